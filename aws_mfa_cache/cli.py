"""Command-line interface for the AWS MFA credential cache."""

import argparse
import getpass
import logging
import sys

from .config import ConfigurationManager
from .exceptions import (
    AuthenticationError,
    CacheNotFoundError,
    CacheWriteError,
    ConfigUnreadableError,
    ConfigurationError,
    CredentialsExpiredError,
    MissingCredentialsError,
    NoMFAConfiguredError,
    ProfileNotFoundError,
    SettingsWriteError,
)
from .formatter import StatusFormatter
from .service import CredentialService
from .settings import CredentialSource, Settings


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        debug: Enable debug-level logging if True
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description='Issue and cache MFA-backed AWS session credentials'
    )
    parser.add_argument(
        '--config',
        default=None,
        help='Path to configuration file (YAML format, optional)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('environment', help='Show detected platform and AWS config locations')
    commands.add_parser('profiles', help='List MFA-enabled profiles')

    status = commands.add_parser('status', help='Show authentication status')
    status.add_argument('--profile', default='default', help='Profile name (default: default)')
    status.add_argument('--all', action='store_true', help='Show every MFA profile')

    login = commands.add_parser('login', help='Authenticate a profile with an MFA code')
    login.add_argument('--profile', default='default', help='Profile name (default: default)')
    login.add_argument('--code', default=None, help='MFA token code (prompted if omitted)')
    login.add_argument('--duration', type=int, default=None,
                       help='Session duration in seconds (default: 43200)')

    env = commands.add_parser('env', help='Print or export credentials as an env file')
    env.add_argument('--profile', default='default', help='Profile name (default: default)')
    env.add_argument('-o', '--output', default=None, help='Write to this file instead of stdout')

    clear = commands.add_parser('clear', help='Delete cached credentials')
    clear.add_argument('--profile', default=None, help='Profile to clear (default: all)')

    settings = commands.add_parser('settings', help='Show or change the credential source')
    settings_commands = settings.add_subparsers(dest='settings_command', required=True)
    settings_commands.add_parser('show', help='Show current settings')
    settings_set = settings_commands.add_parser('set', help='Change settings')
    settings_set.add_argument('--source', required=True,
                              choices=[s.value for s in CredentialSource],
                              help='Where to read AWS config and credentials from')
    settings_set.add_argument('--config-path', default='', help='Custom AWS config file')
    settings_set.add_argument('--creds-path', default='', help='Custom AWS credentials file')
    settings_set.add_argument('--distro', default='', help='WSL2 distro name')

    return parser


def main(argv=None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)

    logger = logging.getLogger(__name__)

    try:
        config = ConfigurationManager.load_config(args.config)
        service = CredentialService(config)
        formatter = StatusFormatter()

        if args.command == 'environment':
            print(formatter.format_environment(service.environment()))

        elif args.command == 'profiles':
            print(formatter.format_profiles_table(service.list_profiles()))

        elif args.command == 'status':
            statuses = service.all_status() if args.all else [service.status(args.profile)]
            print(formatter.format_status_table(statuses))

        elif args.command == 'login':
            code = args.code or getpass.getpass(f"MFA code for profile '{args.profile}': ").strip()
            status = service.login(args.profile, code, args.duration)
            print(f"Profile '{status.profile}' authenticated ({status.time_remaining} remaining)")

        elif args.command == 'env':
            if args.output:
                service.export_env_file(args.profile, args.output)
                print(f"Env file written to {args.output}")
            else:
                sys.stdout.write(service.env_file(args.profile))

        elif args.command == 'clear':
            removed = service.clear(args.profile)
            if args.profile:
                print(f"Credentials cleared for {args.profile}")
            else:
                print(f"All credentials cleared ({removed} profile(s))")

        elif args.command == 'settings':
            if args.settings_command == 'set':
                service.update_settings(Settings.from_dict({
                    'credentialSource': args.source,
                    'customConfigPath': args.config_path,
                    'customCredsPath': args.creds_path,
                    'wsl2Distro': args.distro,
                }))
            for key, value in service.get_settings().to_dict().items():
                print(f"{key}: {value}")

        return 0

    except (ConfigurationError, ConfigUnreadableError, SettingsWriteError) as e:
        logger.error(f"Configuration error: {str(e)}")
        print(f"\nConfiguration Error: {str(e)}", file=sys.stderr)
        return 1

    except (AuthenticationError, ProfileNotFoundError, NoMFAConfiguredError,
            MissingCredentialsError, CredentialsExpiredError) as e:
        logger.error(f"Authentication error: {str(e)}")
        print(f"\nAuthentication Error: {str(e)}", file=sys.stderr)
        return 2

    except (CacheNotFoundError, CacheWriteError) as e:
        logger.error(f"Cache error: {str(e)}")
        print(f"\nCache Error: {str(e)}", file=sys.stderr)
        return 3

    except ValueError as e:
        logger.error(f"Invalid input: {str(e)}")
        print(f"\nInvalid Input: {str(e)}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"\nUnexpected Error: {str(e)}", file=sys.stderr)
        return 4


if __name__ == '__main__':
    sys.exit(main())
