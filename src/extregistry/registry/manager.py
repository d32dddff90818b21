# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Extension Directory Manager

Single responsibility: The only mutator of registry state. Adds and removes
extension packages, keeps the shared extension directory, the load
configuration and the system package reference counts consistent.

Every operation is load -> plan (pure) -> apply files -> write load config
-> persist. The plan step raises before any file is touched, and the
registry document is only rewritten once everything else succeeded.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from extregistry.core.config import Config
from extregistry.core.errors import (
    ExtRegistryError,
    FileOperationFailedError,
    PackageMetadataMissingError,
)
from extregistry.core.logging import log_event
from extregistry.models.registry_models import (
    ExtensionPackage,
    OperationResult,
    Registry,
    RuntimeTarget,
    TransactionOperation,
    TransactionRecord,
    TransactionStatus,
)

from .filesystem import ExtensionFilesystem
from .load_config import LoadConfigWriter
from .ordering import topological_sort
from .store import RegistryStore
from .transactions import TransactionLogger

logger = logging.getLogger(__name__)


# =============================================================================
# PURE REGISTRY TRANSFORMATIONS
# =============================================================================

def reconcile_system_packages(
    registry: Registry,
    package_name: str,
    system_packages: Iterable[str]
) -> Tuple[Registry, List[str]]:
    """
    Make package_name a user of exactly the given system packages.

    Args:
        registry: Current registry (not modified)
        package_name: Extension package whose requirements changed
        system_packages: System packages it requires now (empty on removal)

    Returns:
        (updated registry, sorted system packages that lost their last user)
    """
    updated = registry.clone()
    wanted = set(system_packages)
    unneeded = []

    for name in wanted:
        users = set(updated.system_package_users.get(name, []))
        users.add(package_name)
        updated.system_package_users[name] = sorted(users)

    for name in list(updated.system_package_users):
        users = updated.system_package_users[name]
        if name in wanted or package_name not in users:
            continue
        remaining = [user for user in users if user != package_name]
        if remaining:
            updated.system_package_users[name] = remaining
        else:
            del updated.system_package_users[name]
            unneeded.append(name)

    return updated, sorted(unneeded)


def load_order(registry: Registry) -> List[str]:
    """
    Dependency-respecting order over every package the registry knows.

    Packages are fed to the sort by name so the order does not depend on
    the order records were added in.

    Raises:
        CycleDetectedError: If the dependency graph has a cycle
    """
    names = sorted(set(registry.ext_files) | set(registry.dependencies))
    graph = {name: registry.dependencies.get(name, []) for name in names}
    return topological_sort(graph)


def plan_add(
    registry: Registry,
    package_name: str,
    system_packages: Iterable[str],
    required_extensions: Iterable[str],
    file_names: Iterable[str]
) -> Tuple[Registry, List[str], List[str]]:
    """
    Registry after (re-)adding a package. The previous record for the
    package is replaced, never merged.

    Returns:
        (updated registry, unneeded system packages, load order)

    Raises:
        CycleDetectedError: If the new dependencies introduce a cycle
    """
    updated = registry.clone()
    updated.ext_files[package_name] = list(file_names)
    updated.dependencies[package_name] = sorted(set(required_extensions))
    updated, unneeded = reconcile_system_packages(updated, package_name, system_packages)
    return updated, unneeded, load_order(updated)


def plan_remove(registry: Registry, package_name: str) -> Tuple[Registry, List[str], List[str]]:
    """
    Registry after removing a package.

    Returns:
        (updated registry, unneeded system packages, load order)
    """
    updated = registry.clone()
    updated.ext_files.pop(package_name, None)
    updated.dependencies.pop(package_name, None)
    updated, unneeded = reconcile_system_packages(updated, package_name, [])
    return updated, unneeded, load_order(updated)


def _is_known(registry: Registry, package_name: str) -> bool:
    return (
        registry.is_registered(package_name)
        or package_name in registry.dependencies
        or any(package_name in users for users in registry.system_package_users.values())
    )


# =============================================================================
# MANAGER
# =============================================================================

class ExtensionDirectoryManager:
    """
    Manages the shared extension directory.

    Composes:
    - RegistryStore: packages.json
    - ExtensionFilesystem: copy/delete/enumerate library files
    - LoadConfigWriter: extensions.ini
    - TransactionLogger: transactions.jsonl (optional)
    """

    def __init__(
        self,
        ext_dir: Path,
        runtime: RuntimeTarget = RuntimeTarget.PHP,
        store: Optional[RegistryStore] = None,
        load_config_writer: Optional[LoadConfigWriter] = None,
        transaction_logger: Optional[TransactionLogger] = None,
        filesystem: Optional[ExtensionFilesystem] = None,
        library_suffix: str = ".so",
        registry_file: str = "packages.json",
        load_config_file: str = "extensions.ini"
    ):
        """
        Initialize extension directory manager.

        Args:
            ext_dir: Shared extension directory
            runtime: Target runtime (build output layout and directive syntax)
            store: Registry store (defaults to ext_dir/registry_file)
            load_config_writer: Writer (defaults to ext_dir/load_config_file)
            transaction_logger: Optional operation journal
            filesystem: File operations (defaults to local filesystem)
            library_suffix: Shared-library file extension to collect
        """
        self.ext_dir = Path(ext_dir)
        self.runtime = runtime
        self.store = store or RegistryStore(self.ext_dir / registry_file)
        self.load_config_writer = load_config_writer or LoadConfigWriter(
            self.ext_dir / load_config_file, runtime
        )
        self.transaction_logger = transaction_logger
        self.filesystem = filesystem or ExtensionFilesystem(library_suffix)

    @classmethod
    def from_config(cls, config: Config, journal: bool = True) -> "ExtensionDirectoryManager":
        """Build a manager from configuration"""
        return cls(
            config.ext_path,
            runtime=config.runtime,
            transaction_logger=TransactionLogger(config.transactions_path) if journal else None,
            library_suffix=config.library_suffix,
            registry_file=config.registry_file,
            load_config_file=config.load_config_file,
        )

    # -------------------------------------------------------------------------
    # Directory
    # -------------------------------------------------------------------------

    def ensure_directory(self) -> Path:
        """
        Create the shared extension directory if needed.

        Resolves ext_dir to an absolute path used by every later file
        operation and load directive. Idempotent.
        """
        self.ext_dir = self.filesystem.ensure_directory(self.ext_dir)
        return self.ext_dir

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_extensions(self) -> Dict[str, List[str]]:
        """Registered packages and the files each installed"""
        return self.store.load().ext_files

    def installed_files(self, package_name: str) -> List[str]:
        return self.store.load().ext_files.get(package_name, [])

    def load_order(self) -> List[str]:
        return load_order(self.store.load())

    # -------------------------------------------------------------------------
    # Add
    # -------------------------------------------------------------------------

    def add_extension(
        self,
        package_name: str,
        system_packages: Optional[Iterable[str]],
        required_extensions: Optional[Iterable[str]],
        source_directory: Path
    ) -> List[str]:
        """
        Register a freshly built extension package, replacing any previous build.

        Args:
            package_name: Extension package name
            system_packages: System packages it requires
            required_extensions: Extension packages it must load after
            source_directory: Build root of the package

        Returns:
            Sorted system packages no extension requires anymore

        Raises:
            PackageMetadataMissingError: If metadata is missing (nothing changed)
            CycleDetectedError: If the dependencies introduce a cycle (nothing changed)
            FileOperationFailedError: If copying or deleting files failed
            StoreCorruptError: If the registry document cannot be read
        """
        result = self.add_package(ExtensionPackage(
            name=package_name,
            system_packages=list(self._require(package_name, system_packages, "system_packages")),
            requires=list(self._require(package_name, required_extensions, "required_extensions")),
            source_directory=self._require(package_name, source_directory, "source_directory"),
        ))
        return result.unneeded_system_packages

    def add_package(self, package: ExtensionPackage) -> OperationResult:
        """Register a built package; see add_extension"""
        if not package.name:
            raise PackageMetadataMissingError("Extension package has no name", field="name")
        source_directory = self._require(package.name, package.source_directory, "source_directory")

        ext_dir = self.ensure_directory()
        transaction = self._begin(TransactionOperation.ADD, package.name)

        try:
            registry = self.store.load()
            libraries = self.filesystem.list_libraries(self.runtime.build_output_dir(Path(source_directory)))
            file_names = [library.name for library in libraries]
            self._check_ownership(registry, package.name, file_names)

            updated, unneeded, order = plan_add(
                registry, package.name, package.system_packages, package.requires, file_names
            )

            previous = registry.ext_files.get(package.name, [])
            self._copy_libraries(libraries, ext_dir, previous)
            try:
                removed = self._delete_files([f for f in previous if f not in file_names], ext_dir)
                self._write_load_config(updated, order, ext_dir)
                self._save(updated)
            except ExtRegistryError:
                # Stale files deleted above are not restored; the old registry still lists them
                self._rollback_files([f for f in file_names if f not in previous], ext_dir, registry)
                raise

        except ExtRegistryError as e:
            logger.error(f"Adding extension {package.name} failed: {e}")
            self._fail(transaction, e)
            raise

        if not file_names:
            logger.warning(f"Extension {package.name} produced no {self.filesystem.library_suffix} files")

        result = OperationResult(
            package_name=package.name,
            operation=TransactionOperation.ADD,
            unneeded_system_packages=unneeded,
            installed_files=file_names,
            removed_files=removed,
            load_order=order,
        )
        self._complete(transaction, result)
        log_event(
            logger, "extension_added",
            package_name=package.name,
            files=file_names,
            unneeded_system_packages=unneeded
        )
        return result

    # -------------------------------------------------------------------------
    # Remove
    # -------------------------------------------------------------------------

    def remove_extension(self, package_name: str) -> List[str]:
        """
        Unregister a package and delete the files it installed.

        Removing a package that is not registered is a no-op.

        Returns:
            Sorted system packages no extension requires anymore
        """
        return self.remove_package(package_name).unneeded_system_packages

    def remove_package(self, package_name: str) -> OperationResult:
        """Unregister a package; see remove_extension"""
        registry = self.store.load()
        if not _is_known(registry, package_name):
            logger.info(f"Extension {package_name} is not registered, nothing to remove")
            return OperationResult(package_name=package_name, operation=TransactionOperation.REMOVE)

        ext_dir = self.ensure_directory()
        transaction = self._begin(TransactionOperation.REMOVE, package_name)

        try:
            updated, unneeded, order = plan_remove(registry, package_name)
            removed = self._delete_files(registry.ext_files.get(package_name, []), ext_dir)
            try:
                self._write_load_config(updated, order, ext_dir)
                self._save(updated)
            except ExtRegistryError:
                self._rollback_files([], ext_dir, registry)
                raise
        except ExtRegistryError as e:
            logger.error(f"Removing extension {package_name} failed: {e}")
            self._fail(transaction, e)
            raise

        result = OperationResult(
            package_name=package_name,
            operation=TransactionOperation.REMOVE,
            unneeded_system_packages=unneeded,
            removed_files=removed,
            load_order=order,
        )
        self._complete(transaction, result)
        log_event(
            logger, "extension_removed",
            package_name=package_name,
            files=removed,
            unneeded_system_packages=unneeded
        )
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _require(package_name: str, value, field: str):
        if value is None:
            raise PackageMetadataMissingError(
                f"Cannot add {package_name}: missing {field}",
                package_name=package_name,
                field=field
            )
        return value

    @staticmethod
    def _check_ownership(registry: Registry, package_name: str, file_names: List[str]):
        """A file name in the shared directory belongs to at most one package"""
        for owner, files in registry.ext_files.items():
            if owner == package_name:
                continue
            clashes = sorted(set(files) & set(file_names))
            if clashes:
                raise FileOperationFailedError(
                    f"Cannot add {package_name}: {', '.join(clashes)} already installed by {owner}",
                    path=clashes[0],
                    operation="copy",
                    details={"owner": owner, "files": clashes}
                )

    def _copy_libraries(self, libraries: List[Path], ext_dir: Path, previous: List[str]):
        copied = []
        try:
            for library in libraries:
                copied.append(self.filesystem.copy(library, ext_dir))
        except FileOperationFailedError:
            for file_name in copied:
                if file_name not in previous:
                    self._discard(ext_dir / file_name)
            raise

    def _delete_files(self, file_names: List[str], ext_dir: Path) -> List[str]:
        """Delete files, tolerating ones that are already gone"""
        for file_name in file_names:
            self.filesystem.delete(ext_dir / file_name)
        return list(file_names)

    def _rollback_files(self, added: List[str], ext_dir: Path, registry: Registry):
        """Discard newly copied files and restore the load config of registry"""
        logger.info("Rolling back extension directory...")
        for file_name in added:
            self._discard(ext_dir / file_name)
        try:
            self._write_load_config(registry, load_order(registry), ext_dir)
        except ExtRegistryError as e:
            logger.error(f"Failed to restore load configuration: {e}")

    def _discard(self, path: Path):
        try:
            self.filesystem.delete(path)
        except FileOperationFailedError as e:
            logger.error(f"Failed to remove {path} during rollback: {e}")

    def _write_load_config(self, registry: Registry, order: List[str], ext_dir: Path):
        try:
            self.load_config_writer.write(registry, order, ext_dir)
        except OSError as e:
            raise FileOperationFailedError(
                f"Failed to write load configuration: {e}",
                path=str(self.load_config_writer.path),
                operation="write"
            )

    def _save(self, registry: Registry):
        try:
            self.store.save(registry)
        except OSError as e:
            raise FileOperationFailedError(
                f"Failed to save registry: {e}",
                path=str(self.store.path),
                operation="write"
            )

    def _begin(self, operation: TransactionOperation, package_name: str) -> Optional[TransactionRecord]:
        if self.transaction_logger is None:
            return None
        transaction = self.transaction_logger.create_transaction(operation, package_name)
        transaction.status = TransactionStatus.IN_PROGRESS
        self.transaction_logger.log(transaction)
        return transaction

    def _complete(self, transaction: Optional[TransactionRecord], result: OperationResult):
        if transaction is None:
            return
        transaction.installed_files = result.installed_files
        transaction.removed_files = result.removed_files
        transaction.unneeded_system_packages = result.unneeded_system_packages
        self.transaction_logger.complete(transaction)

    def _fail(self, transaction: Optional[TransactionRecord], error: Exception):
        if transaction is not None:
            self.transaction_logger.fail(transaction, error)
