"""Host probes used by environment detection."""

import logging
import os
import platform
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

logger = logging.getLogger(__name__)


KERNEL_VERSION_FILE = "/proc/version"


class PlatformProber(ABC):
    """Read-only view of the host that environment detection relies on.

    Every probe is best effort: failures are reported as ``None`` (or an
    empty result), never raised.
    """

    @abstractmethod
    def system(self) -> str:
        """Lower-case OS name: ``linux``, ``windows``, ``darwin``..."""

    @abstractmethod
    def home_dir(self) -> str:
        """Home directory of the current user."""

    @abstractmethod
    def getenv(self, name: str) -> Optional[str]:
        """Environment variable lookup."""

    @abstractmethod
    def kernel_version(self) -> Optional[str]:
        """Contents of the kernel version file, or None if unreadable."""

    @abstractmethod
    def windows_user_profile(self) -> Optional[str]:
        """``%USERPROFILE%`` as echoed by ``cmd.exe``, or None if the call failed."""

    @abstractmethod
    def wsl_list_output(self) -> Optional[str]:
        """Raw output of ``wsl --list --quiet``, or None if the call failed."""

    @abstractmethod
    def list_subdirectories(self, path: str) -> List[str]:
        """Names of directories directly under ``path``."""

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        """Filesystem stat on ``path``."""


class NativeProber(PlatformProber):
    """Probes the real host, spawning sub-processes where needed."""

    def __init__(self, timeout: float = 10.0):
        """
        Initialize native prober.

        Args:
            timeout: Seconds before a sub-process probe is abandoned
        """
        self.timeout = timeout

    def system(self) -> str:
        return platform.system().lower()

    def home_dir(self) -> str:
        return os.path.expanduser("~")

    def getenv(self, name: str) -> Optional[str]:
        return os.environ.get(name)

    def kernel_version(self) -> Optional[str]:
        try:
            with open(KERNEL_VERSION_FILE, 'r', encoding='utf-8', errors='replace') as f:
                return f.read()
        except OSError as e:
            logger.debug(f"Cannot read {KERNEL_VERSION_FILE}: {e}")
            return None

    def windows_user_profile(self) -> Optional[str]:
        output = self._run(["cmd.exe", "/c", "echo %USERPROFILE%"])
        if output is None:
            return None
        return output.decode('utf-8', errors='replace')

    def wsl_list_output(self) -> Optional[str]:
        output = self._run(["wsl", "--list", "--quiet"])
        if output is None:
            return None
        # wsl.exe writes UTF-16; decoding as UTF-8 leaves NUL bytes behind,
        # which are stripped by the caller along with any BOM.
        return output.decode('utf-8', errors='ignore')

    def list_subdirectories(self, path: str) -> List[str]:
        try:
            with os.scandir(path) as entries:
                return sorted(entry.name for entry in entries if entry.is_dir())
        except OSError as e:
            logger.debug(f"Cannot list {path}: {e}")
            return []

    def path_exists(self, path: str) -> bool:
        try:
            os.stat(path)
            return True
        except (OSError, ValueError):
            return False

    def _run(self, command: Sequence[str]) -> Optional[bytes]:
        """Run ``command`` and return stdout, or None on any failure."""
        try:
            result = subprocess.run(
                list(command),
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout,
                check=True,
            )
            return result.stdout
        except subprocess.TimeoutExpired:
            logger.warning(f"Probe {command[0]} timed out after {self.timeout}s")
            return None
        except (OSError, subprocess.CalledProcessError) as e:
            logger.debug(f"Probe {command[0]} failed: {e}")
            return None


@dataclass
class StaticProber(PlatformProber):
    """Prober answering from fixed values, for exercising detection offline."""
    system_name: str = "linux"
    home: str = "/home/user"
    env: Dict[str, str] = field(default_factory=dict)
    kernel: Optional[str] = None
    user_profile: Optional[str] = None
    wsl_output: Optional[str] = None
    directories: Dict[str, List[str]] = field(default_factory=dict)
    existing_paths: Set[str] = field(default_factory=set)

    def system(self) -> str:
        return self.system_name

    def home_dir(self) -> str:
        return self.home

    def getenv(self, name: str) -> Optional[str]:
        return self.env.get(name)

    def kernel_version(self) -> Optional[str]:
        return self.kernel

    def windows_user_profile(self) -> Optional[str]:
        return self.user_profile

    def wsl_list_output(self) -> Optional[str]:
        return self.wsl_output

    def list_subdirectories(self, path: str) -> List[str]:
        return list(self.directories.get(path, []))

    def path_exists(self, path: str) -> bool:
        return path in self.existing_paths
