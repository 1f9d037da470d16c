"""Host environment detection and AWS config location discovery.

The detector answers two questions about the machine it runs on: which
platform it is (native Linux, macOS, Windows, or Linux inside WSL2), and
where AWS ``config``/``credentials`` files could live on it. Every probe is
best effort; anything that cannot be determined degrades to an empty value.
"""

import logging
import ntpath
import posixpath
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .probe import NativeProber, PlatformProber
from .settings import CredentialSource

logger = logging.getLogger(__name__)


WSL_KERNEL_MARKERS = ("microsoft", "wsl")
WSL_WINDOWS_USERS_ROOT = "/mnt/c/Users"
EXCLUDED_WINDOWS_USERS = frozenset({"Public", "Default", "Default User"})
WSL_DISTRO_HOME = "/home"


@dataclass(frozen=True)
class AWSPathInfo:
    """One candidate location of the AWS config/credentials pair."""
    source: CredentialSource
    config_path: str
    creds_path: str
    exists: bool
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source.value,
            "configPath": self.config_path,
            "credsPath": self.creds_path,
            "exists": self.exists,
            "description": self.description,
        }


@dataclass(frozen=True)
class HostState:
    """Raw probe results gathered once per detection run."""
    system: str
    is_wsl2: bool
    home_dir: str
    windows_home_dir: str = ""
    user_profile: str = ""
    wsl2_distros: Tuple[str, ...] = ()

    @property
    def path_module(self):
        """Path flavour of the host (``ntpath`` on Windows)."""
        return ntpath if self.system == "windows" else posixpath


@dataclass(frozen=True)
class EnvironmentInfo:
    """Snapshot of the host environment."""
    is_wsl2: bool
    is_windows: bool
    is_linux: bool
    is_macos: bool
    home_dir: str
    windows_home_dir: str = ""
    wsl2_distros: Tuple[str, ...] = ()
    detected_paths: Tuple[AWSPathInfo, ...] = ()
    active_source: Optional[CredentialSource] = None

    def with_active_source(self, source: CredentialSource) -> "EnvironmentInfo":
        return replace(self, active_source=source)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "isWsl2": self.is_wsl2,
            "isWindows": self.is_windows,
            "isLinux": self.is_linux,
            "isMacOS": self.is_macos,
            "detectedPaths": [p.to_dict() for p in self.detected_paths],
            "activeSource": self.active_source.value if self.active_source else "",
            "homeDir": self.home_dir,
        }
        if self.wsl2_distros:
            data["wsl2Distros"] = list(self.wsl2_distros)
        if self.windows_home_dir:
            data["windowsHomeDir"] = self.windows_home_dir
        return data


def to_wsl_mount_path(windows_path: str) -> str:
    """
    Translate a ``C:\\...`` path to its ``/mnt/c/...`` form inside WSL.

    Args:
        windows_path: Windows path as printed by ``cmd.exe``

    Returns:
        Mounted path, or an empty string for anything not on drive C
    """
    if not windows_path.startswith("C:"):
        return ""
    return "/mnt/c" + windows_path[2:].replace("\\", "/")


def wsl_unc_path(distro: str, linux_path: str) -> str:
    """Windows-side ``\\\\wsl$`` path of ``linux_path`` inside ``distro``."""
    return "\\\\wsl$\\" + distro + linux_path.replace("/", "\\")


def parse_wsl_distros(output: str) -> List[str]:
    """
    Parse ``wsl --list --quiet`` output into distro names.

    Args:
        output: Command output, possibly carrying UTF-16 NUL bytes and a BOM

    Returns:
        Non-blank distro names in listed order
    """
    distros = []
    for line in output.split("\n"):
        name = line.replace("\x00", "").replace("\ufeff", "").strip()
        if name:
            distros.append(name)
    return distros


class EnvironmentDetector:
    """Classifies the host and enumerates candidate AWS config locations."""

    def __init__(self, prober: Optional[PlatformProber] = None):
        """
        Initialize detector.

        Args:
            prober: Host probe implementation (defaults to the real host)
        """
        self.prober = prober or NativeProber()
        # Tried in order; the first strategy returning a non-None value wins.
        self._windows_home_strategies: Tuple[Callable[[], Optional[str]], ...] = (
            self._windows_home_from_cmd,
            self._windows_home_from_users_scan,
        )
        # Candidate builders in enumeration order; auto-detection relies on it.
        self._candidate_builders: Tuple[Callable[[HostState], List[AWSPathInfo]], ...] = (
            self._native_candidates,
            self._wsl2_windows_candidates,
            self._windows_native_candidates,
            self._wsl_distro_candidates,
        )

    def is_wsl2(self) -> bool:
        """True when running on a Linux kernel built for WSL."""
        if self.prober.system() != "linux":
            return False
        version = self.prober.kernel_version()
        if version is None:
            return False
        version = version.lower()
        return any(marker in version for marker in WSL_KERNEL_MARKERS)

    def windows_home(self, is_wsl2: Optional[bool] = None) -> str:
        """
        Resolve the Windows user's home directory as seen from WSL2.

        Args:
            is_wsl2: Precomputed WSL2 flag; probed when omitted

        Returns:
            Mounted home path, or an empty string when it cannot be
            determined unambiguously
        """
        if is_wsl2 is None:
            is_wsl2 = self.is_wsl2()
        if not is_wsl2:
            return ""

        for strategy in self._windows_home_strategies:
            home = strategy()
            if home is not None:
                return home
        return ""

    def wsl2_distros(self) -> List[str]:
        """Installed WSL distros; only meaningful on native Windows."""
        if self.prober.system() != "windows":
            return []
        output = self.prober.wsl_list_output()
        if output is None:
            return []
        return parse_wsl_distros(output)

    def host_state(self) -> HostState:
        """Probe the host once, collecting everything detection needs."""
        system = self.prober.system()
        is_wsl2 = self.is_wsl2()
        return HostState(
            system=system,
            is_wsl2=is_wsl2,
            home_dir=self.prober.home_dir(),
            windows_home_dir=self.windows_home(is_wsl2),
            user_profile=(self.prober.getenv("USERPROFILE") or "") if system == "windows" else "",
            wsl2_distros=tuple(self.wsl2_distros()),
        )

    def discover_paths(self, state: Optional[HostState] = None) -> List[AWSPathInfo]:
        """
        Enumerate candidate AWS config locations.

        Order is fixed: native home, Windows home seen from WSL2, Windows
        USERPROFILE, then one entry per WSL distro.

        Args:
            state: Host probe results; gathered fresh when omitted

        Returns:
            Candidate locations in enumeration order
        """
        if state is None:
            state = self.host_state()

        paths: List[AWSPathInfo] = []
        for build in self._candidate_builders:
            paths.extend(build(state))
        return paths

    def detect(self) -> EnvironmentInfo:
        """Build a fresh snapshot of the host environment."""
        state = self.host_state()
        info = EnvironmentInfo(
            is_wsl2=state.is_wsl2,
            is_windows=state.system == "windows",
            is_linux=state.system == "linux" and not state.is_wsl2,
            is_macos=state.system == "darwin",
            home_dir=state.home_dir,
            windows_home_dir=state.windows_home_dir,
            wsl2_distros=state.wsl2_distros,
            detected_paths=tuple(self.discover_paths(state)),
        )
        logger.debug(
            f"Detected environment: system={state.system} wsl2={state.is_wsl2} "
            f"candidates={len(info.detected_paths)}"
        )
        return info

    def _windows_home_from_cmd(self) -> Optional[str]:
        profile = self.prober.windows_user_profile()
        if profile is None:
            return None
        return to_wsl_mount_path(profile.strip())

    def _windows_home_from_users_scan(self) -> Optional[str]:
        candidates = [
            name for name in self.prober.list_subdirectories(WSL_WINDOWS_USERS_ROOT)
            if name not in EXCLUDED_WINDOWS_USERS
        ]
        if len(candidates) == 1:
            return posixpath.join(WSL_WINDOWS_USERS_ROOT, candidates[0])
        if candidates:
            logger.debug(f"Ambiguous Windows users under {WSL_WINDOWS_USERS_ROOT}: {candidates}")
        return ""

    def _probed(self, source: CredentialSource, home: str, description: str,
                path_module) -> AWSPathInfo:
        config_path = path_module.join(home, ".aws", "config")
        return AWSPathInfo(
            source=source,
            config_path=config_path,
            creds_path=path_module.join(home, ".aws", "credentials"),
            exists=self.prober.path_exists(config_path),
            description=description,
        )

    def _native_candidates(self, state: HostState) -> List[AWSPathInfo]:
        # macOS shares the Linux layout and source
        description = "macOS home directory" if state.system == "darwin" else "Native home directory"
        return [self._probed(CredentialSource.LINUX, state.home_dir, description, state.path_module)]

    def _wsl2_windows_candidates(self, state: HostState) -> List[AWSPathInfo]:
        if not (state.is_wsl2 and state.windows_home_dir):
            return []
        return [self._probed(CredentialSource.WINDOWS, state.windows_home_dir,
                             "Windows home directory (via /mnt/c)", posixpath)]

    def _windows_native_candidates(self, state: HostState) -> List[AWSPathInfo]:
        if state.system != "windows" or not state.user_profile:
            return []
        return [self._probed(CredentialSource.WINDOWS, state.user_profile,
                             "Windows USERPROFILE", ntpath)]

    def _wsl_distro_candidates(self, state: HostState) -> List[AWSPathInfo]:
        paths = []
        for distro in state.wsl2_distros:
            unc = wsl_unc_path(distro, WSL_DISTRO_HOME)
            paths.append(AWSPathInfo(
                source=CredentialSource.WSL2,
                config_path=unc,
                creds_path=unc,
                exists=False,
                description=f"WSL2 distro: {distro}",
            ))
        return paths
