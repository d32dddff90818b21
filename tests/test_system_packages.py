# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the system package capability

subprocess is mocked; nothing is installed.
"""

import subprocess
from unittest.mock import patch, MagicMock

import pytest

from extregistry.core.errors import SystemPackageError
from extregistry.system_packages import AptSystemPackages, NullSystemPackages, detect_platform


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestAptSystemPackages:
    """Test suite for AptSystemPackages"""

    @patch("extregistry.system_packages.subprocess.run", return_value=completed())
    def test_install_updates_once(self, mock_run):
        """apt-get update runs once per instance"""
        apt = AptSystemPackages(use_sudo=True)
        apt.install_system_packages(["libx"])
        apt.install_system_packages(["liby", "libz"])

        commands = [call.args[0] for call in mock_run.call_args_list]
        assert commands == [
            ["sudo", "apt-get", "update"],
            ["sudo", "apt-get", "install", "-y", "libx"],
            ["sudo", "apt-get", "install", "-y", "liby", "libz"],
        ]

    @patch("extregistry.system_packages.subprocess.run", return_value=completed())
    def test_install_nothing(self, mock_run):
        AptSystemPackages().install_system_packages([])

        mock_run.assert_not_called()

    @patch("extregistry.system_packages.subprocess.run", return_value=completed())
    def test_propose_removal_without_sudo(self, mock_run):
        removed = AptSystemPackages(use_sudo=False).propose_removal(["libx"])

        assert removed == ["libx"]
        mock_run.assert_called_once()
        assert mock_run.call_args.args[0] == ["apt-get", "remove", "-y", "libx"]

    @patch("extregistry.system_packages.subprocess.run", return_value=completed(100, stderr="E: locked"))
    def test_failure_raises(self, mock_run):
        with pytest.raises(SystemPackageError) as exc_info:
            AptSystemPackages(use_sudo=False).remove(["libx"])

        assert exc_info.value.returncode == 100
        assert "E: locked" in str(exc_info.value)

    @patch("extregistry.system_packages.subprocess.run", side_effect=FileNotFoundError("apt-get"))
    def test_missing_binary(self, mock_run):
        with pytest.raises(SystemPackageError):
            AptSystemPackages(use_sudo=False).install_system_packages(["libx"])


class TestNullSystemPackages:
    """Test suite for NullSystemPackages"""

    def test_records_calls(self):
        null = NullSystemPackages()
        null.install_system_packages(["libx"])

        assert null.propose_removal(["liby"]) == []
        assert null.installed == ["libx"]
        assert null.proposed == ["liby"]


class TestDetectPlatform:
    """Test suite for detect_platform"""

    @patch("extregistry.system_packages.platform.system", return_value="Darwin")
    def test_non_linux(self, mock_system):
        assert detect_platform() is None

    @patch("extregistry.system_packages.shutil.which", return_value=None)
    @patch("extregistry.system_packages.platform.system", return_value="Linux")
    def test_missing_tools(self, mock_system, mock_which):
        assert detect_platform() is None

    @patch("extregistry.system_packages.subprocess.run")
    @patch("extregistry.system_packages.shutil.which", return_value="/usr/bin/tool")
    @patch("extregistry.system_packages.platform.system", return_value="Linux")
    def test_debian_like(self, mock_system, mock_which, mock_run):
        mock_run.side_effect = [completed(stdout="Ubuntu\n"), completed(stdout="22.04\n")]

        assert detect_platform() == ("Ubuntu", "22.04")
