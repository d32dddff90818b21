# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Data Models

Defines data structures for the extension registry: the persisted registry
document, package descriptions, operation results and journal records.
"""

from typing import List, Dict, Optional, Any
from datetime import datetime
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class RuntimeTarget(str, Enum):
    """Runtime that loads the extensions"""
    PHP = "php"
    HHVM = "hhvm"

    @property
    def directive(self) -> str:
        """Load directive prefix written before each library path"""
        if self is RuntimeTarget.HHVM:
            return "hhvm.extensions[] = "
        return "extension = "

    def build_output_dir(self, source_directory: Path) -> Path:
        """Directory holding compiled libraries for a build rooted at source_directory"""
        if self is RuntimeTarget.HHVM:
            return source_directory
        return source_directory / "modules"


class TransactionStatus(str, Enum):
    """Transaction status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class TransactionOperation(str, Enum):
    """Type of transaction operation"""
    ADD = "add"
    REMOVE = "remove"


class Registry(BaseModel):
    """
    Persisted record of every managed extension package.

    - ext_files: package -> shared-library file names it placed in the ext dir
    - dependencies: package -> extension packages it must load after
    - system_package_users: system package -> extension packages requiring it

    Set-valued entries are kept as sorted, de-duplicated lists so the
    document serializes identically for identical state.
    """
    model_config = ConfigDict(populate_by_name=True)

    ext_files: Dict[str, List[str]] = Field(default_factory=dict, alias="extFiles")
    dependencies: Dict[str, List[str]] = Field(default_factory=dict)
    system_package_users: Dict[str, List[str]] = Field(default_factory=dict, alias="packages")

    @field_validator("dependencies", "system_package_users")
    @classmethod
    def _as_sorted_sets(cls, value: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {key: sorted(set(names)) for key, names in value.items()}

    def is_registered(self, package_name: str) -> bool:
        return package_name in self.ext_files

    def clone(self) -> "Registry":
        """Deep copy; mutations on the clone never reach this instance"""
        return self.model_copy(deep=True)

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready mapping using the on-disk field names"""
        return {
            "extFiles": {name: list(files) for name, files in sorted(self.ext_files.items())},
            "dependencies": {name: sorted(deps) for name, deps in sorted(self.dependencies.items())},
            "packages": {name: sorted(users) for name, users in sorted(self.system_package_users.items())},
        }


class ExtensionPackage(BaseModel):
    """Caller-supplied description of an extension package build"""
    name: str
    system_packages: List[str] = Field(default_factory=list)
    requires: List[str] = Field(default_factory=list)
    source_directory: Optional[Path] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "acme/ext-geoip",
                "system_packages": ["libgeoip-dev"],
                "requires": ["acme/ext-common"],
                "source_directory": "/srv/app/vendor/acme/ext-geoip"
            }
        }
    )


class OperationResult(BaseModel):
    """Outcome of an add/remove call"""
    package_name: str
    operation: TransactionOperation
    unneeded_system_packages: List[str] = Field(default_factory=list)
    installed_files: List[str] = Field(default_factory=list)
    removed_files: List[str] = Field(default_factory=list)
    load_order: List[str] = Field(default_factory=list)


class TransactionRecord(BaseModel):
    """Journal record for an add/remove operation"""
    id: str
    operation: TransactionOperation
    package_name: str
    status: TransactionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    installed_files: List[str] = Field(default_factory=list)
    removed_files: List[str] = Field(default_factory=list)
    unneeded_system_packages: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "operation": self.operation.value,
            "package_name": self.package_name,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "installed_files": self.installed_files,
            "removed_files": self.removed_files,
            "unneeded_system_packages": self.unneeded_system_packages,
            "error": self.error
        }
