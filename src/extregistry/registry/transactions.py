# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Transaction Logger

Single responsibility: Log and retrieve add/remove operations (append-only JSONL)
"""

import json
import logging
import uuid
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime, UTC

from extregistry.models.registry_models import (
    TransactionRecord,
    TransactionOperation,
    TransactionStatus
)

logger = logging.getLogger(__name__)


class TransactionLogger:
    """Manages transaction logging to append-only JSONL file"""

    def __init__(self, log_file: Path):
        """
        Initialize transaction logger.

        Args:
            log_file: Path to transactions.jsonl
        """
        self.log_file = Path(log_file)

    def create_transaction(
        self,
        operation: TransactionOperation,
        package_name: str
    ) -> TransactionRecord:
        """
        Create a new transaction record.

        Args:
            operation: Type of operation
            package_name: Extension package name

        Returns:
            New transaction record
        """
        return TransactionRecord(
            id=f"txn-{uuid.uuid4().hex[:12]}",
            operation=operation,
            package_name=package_name,
            status=TransactionStatus.PENDING,
            started_at=datetime.now(UTC)
        )

    def log(self, transaction: TransactionRecord):
        """
        Append transaction to JSONL log file.

        Args:
            transaction: Transaction record to log
        """
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        log_line = json.dumps(transaction.to_dict())
        with open(self.log_file, "a") as f:
            f.write(log_line + "\n")

    def complete(self, transaction: TransactionRecord):
        transaction.status = TransactionStatus.COMPLETED
        transaction.completed_at = datetime.now(UTC)
        self.log(transaction)

    def fail(self, transaction: TransactionRecord, error: Exception):
        transaction.status = TransactionStatus.FAILED
        transaction.error = str(error)
        transaction.completed_at = datetime.now(UTC)
        self.log(transaction)

    def list_transactions(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        List recent transactions from log.

        Args:
            limit: Maximum number of transactions to return

        Returns:
            List of transaction records (most recent first)
        """
        transactions = self._read_entries()

        # Return most recent first
        return list(reversed(transactions[-limit:]))

    def get_transaction(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the latest entry for a transaction ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction record or None if not found
        """
        # Newest first, so the final status of a transaction wins
        for txn in reversed(self._read_entries()):
            if txn.get("id") == transaction_id:
                return txn
        return None

    def _read_entries(self) -> List[Dict[str, Any]]:
        if not self.log_file.exists():
            return []

        entries = []
        with open(self.log_file, "r") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse transaction log line: {e}")
        return entries
