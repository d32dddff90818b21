# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

from .registry_models import (
    Registry,
    RuntimeTarget,
    ExtensionPackage,
    OperationResult,
    TransactionOperation,
    TransactionStatus,
    TransactionRecord,
)

__all__ = [
    "Registry",
    "RuntimeTarget",
    "ExtensionPackage",
    "OperationResult",
    "TransactionOperation",
    "TransactionStatus",
    "TransactionRecord",
]
