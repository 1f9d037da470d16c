"""Formatting of credential status for display and export."""

from datetime import datetime
from typing import Iterable, Optional

from tabulate import tabulate

from .cache import CachedCredentials, utc_now
from .environment import EnvironmentInfo
from .profiles import ProfileInfo


def format_time_remaining(expiration: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe the time left until ``expiration``.

    Args:
        expiration: Aware expiration timestamp
        now: Current time (defaults to the wall clock)

    Returns:
        ``"<h>h <m>m"``, ``"<m>m"`` or ``"expired"``
    """
    if now is None:
        now = utc_now()
    remaining = (expiration - now).total_seconds()
    if remaining < 0:
        return "expired"

    hours = int(remaining // 3600)
    minutes = int(remaining // 60) % 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def format_env_file(creds: CachedCredentials) -> str:
    """Render credentials as ``KEY=value`` lines for ``docker --env-file``."""
    return (
        f"AWS_ACCESS_KEY_ID={creds.access_key_id}\n"
        f"AWS_SECRET_ACCESS_KEY={creds.secret_access_key}\n"
        f"AWS_SESSION_TOKEN={creds.session_token}\n"
    )


class StatusFormatter:
    """Formats service results as ASCII tables for the command line."""

    def format_status_table(self, statuses: Iterable) -> str:
        """
        Format profile statuses as a table.

        Args:
            statuses: ProfileStatus objects

        Returns:
            Formatted ASCII table string
        """
        rows = []
        for status in statuses:
            rows.append([
                status.profile,
                "yes" if status.authenticated else "no",
                status.expiration.isoformat() if status.expiration else "-",
                status.time_remaining or "-",
            ])
        headers = ["Profile", "Authenticated", "Expiration", "Remaining"]
        if not rows:
            return f"{tabulate([], headers=headers, tablefmt='grid')}\n\n(no MFA profiles found)"
        return tabulate(rows, headers=headers, tablefmt='grid')

    def format_profiles_table(self, profiles: Iterable[ProfileInfo]) -> str:
        """Format MFA profiles as a table."""
        rows = [[p.name, p.region or "-", p.mfa_serial] for p in profiles]
        headers = ["Profile", "Region", "MFA Serial"]
        if not rows:
            return f"{tabulate([], headers=headers, tablefmt='grid')}\n\n(no MFA profiles found)"
        return tabulate(rows, headers=headers, tablefmt='grid')

    def format_environment(self, info: EnvironmentInfo) -> str:
        """Format the environment snapshot and its candidate paths."""
        if info.is_wsl2:
            platform_name = "WSL2"
        elif info.is_windows:
            platform_name = "Windows"
        elif info.is_macos:
            platform_name = "macOS"
        elif info.is_linux:
            platform_name = "Linux"
        else:
            platform_name = "unknown"

        summary = [
            ["Platform", platform_name],
            ["Home directory", info.home_dir],
            ["Active source", info.active_source.value if info.active_source else "-"],
        ]
        if info.windows_home_dir:
            summary.append(["Windows home", info.windows_home_dir])
        if info.wsl2_distros:
            summary.append(["WSL2 distros", ", ".join(info.wsl2_distros)])

        paths = [
            [p.source.value, p.config_path, p.creds_path, "yes" if p.exists else "no", p.description]
            for p in info.detected_paths
        ]
        return "\n\n".join([
            tabulate(summary, tablefmt='plain'),
            tabulate(paths, headers=["Source", "Config", "Credentials", "Exists", "Description"],
                     tablefmt='grid'),
        ])
