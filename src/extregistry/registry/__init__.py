# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Module - Extension Directory Management

Modular extension bookkeeping:
- Each module does one thing well
- Modules compose to form the extension directory manager
- Text-based state throughout (JSON, JSONL, INI)
"""

from .ordering import topological_sort
from .store import RegistryStore
from .filesystem import ExtensionFilesystem
from .load_config import LoadConfigWriter, render_load_config
from .transactions import TransactionLogger
from .manager import (
    ExtensionDirectoryManager,
    reconcile_system_packages,
    plan_add,
    plan_remove,
    load_order,
)

__all__ = [
    "topological_sort",
    "RegistryStore",
    "ExtensionFilesystem",
    "LoadConfigWriter",
    "render_load_config",
    "TransactionLogger",
    "ExtensionDirectoryManager",
    "reconcile_system_packages",
    "plan_add",
    "plan_remove",
    "load_order",
]
