# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Extension Filesystem

Single responsibility: Copy, delete and enumerate shared-library files
"""

import logging
import shutil
from pathlib import Path
from typing import List

from extregistry.core.errors import FileOperationFailedError

logger = logging.getLogger(__name__)


class ExtensionFilesystem:
    """File operations on the shared extension directory"""

    def __init__(self, library_suffix: str = ".so"):
        self.library_suffix = library_suffix

    def ensure_directory(self, directory: Path) -> Path:
        """Create directory if needed and return its absolute, resolved path"""
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationFailedError(
                f"Cannot create extension directory {directory}: {e}",
                path=str(directory),
                operation="mkdir"
            )
        return directory.resolve()

    def list_libraries(self, directory: Path) -> List[Path]:
        """
        List shared-library files directly inside directory, sorted by name.

        Raises:
            FileOperationFailedError: If the directory cannot be read
        """
        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise FileOperationFailedError(
                f"Cannot read build output directory {directory}: {e}",
                path=str(directory),
                operation="list"
            )
        return sorted(
            (p for p in entries if p.is_file() and p.suffix == self.library_suffix),
            key=lambda p: p.name
        )

    def copy(self, source: Path, target_dir: Path) -> str:
        """Copy source into target_dir, returning the file name it was stored under"""
        target = target_dir / source.name
        try:
            shutil.copy2(source, target)
        except OSError as e:
            raise FileOperationFailedError(
                f"Failed to copy {source} to {target}: {e}",
                path=str(target),
                operation="copy"
            )
        logger.debug(f"Copied {source} -> {target}")
        return source.name

    def delete(self, path: Path) -> bool:
        """
        Delete a file.

        Returns:
            True if deleted, False if it was already absent

        Raises:
            FileOperationFailedError: If a present file could not be deleted
        """
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Extension file already missing: {path}")
            return False
        except OSError as e:
            raise FileOperationFailedError(
                f"Failed to delete {path}: {e}",
                path=str(path),
                operation="delete"
            )
        logger.debug(f"Deleted {path}")
        return True
