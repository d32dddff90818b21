# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
System Package Capability

The registry only decides which system packages are needed or unneeded;
installing and removing them goes through a SystemPackageManager supplied by
the caller. AptSystemPackages drives apt-get on Debian-like systems.
"""

import logging
import platform
import shutil
import subprocess
from typing import Iterable, List, Optional, Protocol, Tuple

from extregistry.core.errors import SystemPackageError

logger = logging.getLogger(__name__)


class SystemPackageManager(Protocol):
    """Installs and removes operating-system packages"""

    def install_system_packages(self, names: Iterable[str]) -> None:
        ...

    def propose_removal(self, names: Iterable[str]) -> List[str]:
        """Offer names for removal, returning the ones actually removed"""
        ...


def _run(cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
    """
    Run a command, capturing output

    Args:
        cmd: Command and arguments
        check: Raise SystemPackageError on non-zero exit code
    """
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as e:
        raise SystemPackageError(f"Cannot run {cmd[0]}: {e}", command=cmd)

    if check and result.returncode != 0:
        raise SystemPackageError(
            f"Command failed: {' '.join(cmd)}\n{result.stderr}",
            command=cmd,
            returncode=result.returncode
        )
    return result


def detect_platform() -> Optional[Tuple[str, str]]:
    """
    Detect (distro, release) on a Debian-like Linux system.

    Returns:
        (distro, release) or None if this is not a Linux system with
        lsb_release, apt-get and dpkg available
    """
    if platform.system().upper() != "LINUX":
        return None

    for tool in ("lsb_release", "apt-get", "dpkg"):
        if shutil.which(tool) is None:
            logger.debug(f"{tool} not found, not a Debian-like system")
            return None

    distro = _run(["lsb_release", "-i", "--short"], check=False)
    release = _run(["lsb_release", "-r", "--short"], check=False)
    if distro.returncode != 0 or release.returncode != 0:
        return None

    return distro.stdout.strip(), release.stdout.strip()


class AptSystemPackages:
    """SystemPackageManager backed by apt-get"""

    def __init__(self, use_sudo: bool = True):
        self.use_sudo = use_sudo
        self._updated = False

    def _apt(self, *args: str) -> List[str]:
        cmd = ["apt-get", *args]
        return ["sudo", *cmd] if self.use_sudo else cmd

    def install_system_packages(self, names: Iterable[str]) -> None:
        names = list(names)
        if not names:
            return

        # Refresh package lists once per instance
        if not self._updated:
            _run(self._apt("update"))
            self._updated = True

        logger.info(f"Installing system packages: {' '.join(names)}")
        _run(self._apt("install", "-y", *names))

    def remove(self, names: Iterable[str]) -> List[str]:
        names = list(names)
        if not names:
            return []
        logger.info(f"Removing system packages: {' '.join(names)}")
        _run(self._apt("remove", "-y", *names))
        return names

    def propose_removal(self, names: Iterable[str]) -> List[str]:
        """Non-interactive: removes everything proposed"""
        return self.remove(names)


class NullSystemPackages:
    """SystemPackageManager that only records calls; removes nothing"""

    def __init__(self):
        self.installed: List[str] = []
        self.proposed: List[str] = []

    def install_system_packages(self, names: Iterable[str]) -> None:
        self.installed.extend(names)

    def propose_removal(self, names: Iterable[str]) -> List[str]:
        self.proposed.extend(names)
        return []
