"""AWS STS session token issuance."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionToken:
    """Temporary credentials returned by STS."""
    access_key_id: str
    secret_access_key: str
    session_token: str
    expiration: datetime


class SessionTokenIssuer(ABC):
    """Obtains an MFA-backed session token for a set of long-lived keys."""

    @abstractmethod
    def get_session_token(self, access_key_id: str, secret_access_key: str,
                          serial_number: str, token_code: str, duration_seconds: int,
                          region: Optional[str] = None) -> SessionToken:
        """
        Request a session token.

        Raises:
            AuthenticationError: If the request is rejected or cannot be made
        """


class StsSessionTokenIssuer(SessionTokenIssuer):
    """Calls ``sts:GetSessionToken`` through boto3."""

    def get_session_token(self, access_key_id: str, secret_access_key: str,
                          serial_number: str, token_code: str, duration_seconds: int,
                          region: Optional[str] = None) -> SessionToken:
        """
        Request a session token from STS using static base credentials.

        Args:
            access_key_id: Long-lived access key of the calling identity
            secret_access_key: Matching secret key
            serial_number: MFA device serial
            token_code: Current one-time code from the device
            duration_seconds: Requested lifetime; bounds are enforced by STS
            region: Optional region for the STS endpoint

        Returns:
            SessionToken with the issued credentials

        Raises:
            AuthenticationError: If STS rejects the request or is unreachable
        """
        try:
            session = boto3.Session(
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region,
            )
            sts_client = session.client('sts')
            response = sts_client.get_session_token(
                DurationSeconds=duration_seconds,
                SerialNumber=serial_number,
                TokenCode=token_code,
            )
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            logger.warning(f"STS rejected session token request ({error_code})")
            raise AuthenticationError(f"MFA authentication failed: {str(e)}") from e
        except BotoCoreError as e:
            raise AuthenticationError(f"MFA authentication failed: {str(e)}") from e

        try:
            credentials = response['Credentials']
            expiration = credentials['Expiration']
            if isinstance(expiration, datetime) and expiration.tzinfo is None:
                expiration = expiration.replace(tzinfo=timezone.utc)
            return SessionToken(
                access_key_id=credentials['AccessKeyId'],
                secret_access_key=credentials['SecretAccessKey'],
                session_token=credentials['SessionToken'],
                expiration=expiration,
            )
        except (KeyError, TypeError) as e:
            raise AuthenticationError(f"Unexpected STS response: missing {str(e)}") from e
