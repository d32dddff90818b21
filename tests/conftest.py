# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Fixtures for the extension registry

Provides temporary extension directories, fake build outputs and a
manager wired to them.
"""

import os
import sys
import pytest
from pathlib import Path
from typing import Iterable

# Add src to path for imports when the package is not installed
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from extregistry.models.registry_models import RuntimeTarget
from extregistry.registry import ExtensionDirectoryManager, TransactionLogger


# ============================================================================
# Directory Fixtures
# ============================================================================

@pytest.fixture
def ext_dir(tmp_path) -> Path:
    """Shared extension directory (not created yet)"""
    return tmp_path / "vendor" / "ext"


@pytest.fixture
def make_build(tmp_path):
    """
    Factory creating a fake build output for a package.

    Usage:
        source = make_build("acme/geoip", ["geoip.so"])
    """
    def _make(package_name: str, files: Iterable[str], runtime: RuntimeTarget = RuntimeTarget.PHP, extra: Iterable[str] = ()):
        source = tmp_path / "builds" / package_name.replace("/", "__")
        output = runtime.build_output_dir(source)
        output.mkdir(parents=True, exist_ok=True)
        for stale in output.iterdir():
            if stale.is_file():
                stale.unlink()
        for file_name in list(files) + list(extra):
            (output / file_name).write_text(f"{package_name}:{file_name}")
        return source

    return _make


# ============================================================================
# Manager Fixtures
# ============================================================================

@pytest.fixture
def journal(ext_dir) -> TransactionLogger:
    return TransactionLogger(ext_dir / "transactions.jsonl")


@pytest.fixture
def manager(ext_dir, journal) -> ExtensionDirectoryManager:
    """Manager for the PHP layout with an operation journal"""
    return ExtensionDirectoryManager(ext_dir, runtime=RuntimeTarget.PHP, transaction_logger=journal)
