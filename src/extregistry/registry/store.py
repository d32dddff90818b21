# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Store

Single responsibility: Load and persist the registry document (packages.json)
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from extregistry.core.errors import StoreCorruptError
from extregistry.models.registry_models import Registry

logger = logging.getLogger(__name__)

# On-disk field names of the three registry mappings
MAPPING_FIELDS = ("extFiles", "dependencies", "packages")


def atomic_write_text(path: Path, content: str) -> None:
    """
    Replace path with content without ever exposing a partial file.

    Writes a temporary sibling, fsyncs it and renames it over the target.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _as_mapping(value: Any, field: str) -> Dict[str, Any]:
    """
    Materialize a mapping-valued field.

    Serializers commonly write an empty mapping as [] and some write
    mappings as lists of [key, value] pairs; both come back as dicts.
    """
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        mapping = {}
        for item in value:
            if not (isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str)):
                raise ValueError(f"'{field}' is a list but not a list of [key, value] pairs")
            mapping[item[0]] = item[1]
        return mapping
    raise ValueError(f"'{field}' must be a mapping, got {type(value).__name__}")


def _as_name_list(value: Any, field: str) -> List[str]:
    """
    Materialize a set of names.

    Accepts a list of names, an index-keyed object ({"0": "a.so", "2": "b.so"},
    what a sparse array encodes to) or a {name: true} object (the layout
    older installers wrote for system package users).
    """
    if value is None:
        return []
    if isinstance(value, dict):
        if value and all(key.isdigit() for key in value):
            names = [value[key] for key in sorted(value, key=int)]
            if all(isinstance(name, str) for name in names):
                return names
        return [name for name, present in value.items() if present]
    if isinstance(value, list) and all(isinstance(name, str) for name in value):
        return list(value)
    raise ValueError(f"'{field}' entries must be lists of names")


def normalize_document(data: Any) -> Dict[str, Dict[str, List[str]]]:
    """
    Convert a raw decoded document into the plain Registry shape.

    Raises:
        ValueError: If the document cannot be interpreted as a registry
    """
    if isinstance(data, list) and not data:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"document root must be an object, got {type(data).__name__}")

    normalized = {}
    for field in MAPPING_FIELDS:
        mapping = _as_mapping(data.get(field), field)
        normalized[field] = {
            str(key): _as_name_list(names, f"{field}.{key}")
            for key, names in mapping.items()
        }

    # A system package with no users is not tracked
    normalized["packages"] = {
        name: users for name, users in normalized["packages"].items() if users
    }
    return normalized


class RegistryStore:
    """Reads and writes the registry document as a whole"""

    def __init__(self, path: Path):
        """
        Initialize registry store.

        Args:
            path: Path to packages.json
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Registry:
        """
        Load the registry from disk.

        Returns:
            Registry (empty if the document does not exist yet)

        Raises:
            StoreCorruptError: If the document exists but cannot be parsed
        """
        if not self.path.exists():
            logger.debug(f"No registry document at {self.path}, starting empty")
            return Registry()

        try:
            raw = self.path.read_text()
        except OSError as e:
            raise StoreCorruptError(f"Cannot read registry document: {e}", path=str(self.path))

        if not raw.strip():
            raise StoreCorruptError("Registry document is empty", path=str(self.path))

        try:
            data = json.loads(raw)
            return Registry.model_validate(normalize_document(data))
        except (json.JSONDecodeError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load registry document {self.path}: {e}")
            raise StoreCorruptError(
                f"Registry document is not a valid registry: {e}",
                path=str(self.path)
            )

    def save(self, registry: Registry):
        """
        Persist the full registry, replacing the previous document.

        Args:
            registry: Registry to persist
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(registry.to_document(), indent=2, sort_keys=True) + "\n"
        atomic_write_text(self.path, content)
        logger.debug(f"Saved registry with {len(registry.ext_files)} extensions to {self.path}")
