# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Command-line interface for the extension registry.

Usage:
    extregistry add acme/ext-geoip --source vendor/acme/ext-geoip --system-package libgeoip-dev
    extregistry add --package-file vendor/acme/ext-geoip/composer.json
    extregistry --remove-unneeded remove acme/ext-geoip
    extregistry list | order | history

Output is JSON on stdout; logs go to stderr.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from extregistry.core.config import get_config, load_config
from extregistry.core.errors import (
    ExtRegistryError,
    PackageMetadataMissingError,
    sanitize_error_for_user,
)
from extregistry.core.logging import configure_root_logger
from extregistry.models.registry_models import ExtensionPackage
from extregistry.package_metadata import load_package_file
from extregistry.registry import ExtensionDirectoryManager, TransactionLogger
from extregistry.system_packages import AptSystemPackages, detect_platform

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extregistry",
        description="Manage compiled runtime extensions and their load order"
    )
    parser.add_argument("--config", help="Path to config YAML")
    parser.add_argument("--ext-dir", help="Shared extension directory")
    parser.add_argument("--runtime", choices=["php", "hhvm"], help="Target runtime")
    parser.add_argument(
        "--remove-unneeded",
        action="store_true",
        help="Remove system packages no extension needs anymore (apt-get)"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Register a built extension package")
    add.add_argument("name", nargs="?", help="Extension package name")
    add.add_argument("--source", type=Path, help="Build root of the package")
    add.add_argument("--system-package", action="append", default=[], dest="system_packages")
    add.add_argument("--requires", action="append", default=[], dest="requires")
    add.add_argument("--package-file", type=Path, help="composer.json-style package description")
    add.add_argument("--distro", help="Distribution id (default: lsb_release)")
    add.add_argument("--release", help="Distribution release (default: lsb_release)")
    add.add_argument(
        "--install-system-packages",
        action="store_true",
        help="apt-get install the package's system packages first"
    )

    remove = sub.add_parser("remove", help="Unregister an extension package")
    remove.add_argument("name")

    sub.add_parser("list", help="List registered extensions and their files")
    sub.add_parser("order", help="Print the load order")

    history = sub.add_parser("history", help="Show recent add/remove operations")
    history.add_argument("--limit", type=int, default=20)

    return parser


def _package_from_args(args) -> ExtensionPackage:
    if args.package_file:
        distro, release = args.distro, args.release
        if not (distro and release):
            detected = detect_platform()
            if detected is None:
                raise PackageMetadataMissingError(
                    "Cannot detect distribution; pass --distro and --release",
                    field="platform"
                )
            distro, release = distro or detected[0], release or detected[1]
        package = load_package_file(args.package_file, distro, release, args.source)
        if args.name and args.name != package.name:
            raise PackageMetadataMissingError(
                f"Package file describes {package.name}, not {args.name}",
                package_name=args.name,
                field="name"
            )
        return package

    if not args.name or args.source is None:
        raise PackageMetadataMissingError("add needs NAME and --source, or --package-file", field="name")

    return ExtensionPackage(
        name=args.name,
        system_packages=args.system_packages,
        requires=args.requires,
        source_directory=args.source,
    )


def _emit(data) -> None:
    print(json.dumps(data, indent=2, default=str))


def run(args, apt: Optional[AptSystemPackages] = None) -> int:
    config = load_config(args.config) if args.config else get_config()
    config = config.with_overrides(ext_dir=args.ext_dir, runtime=args.runtime)
    configure_root_logger(config.log_level, config.log_format)

    manager = ExtensionDirectoryManager.from_config(config)
    apt = apt or AptSystemPackages(use_sudo=config.use_sudo)

    if args.command == "add":
        package = _package_from_args(args)
        if args.install_system_packages:
            apt.install_system_packages(package.system_packages)
        result = manager.add_package(package)
    elif args.command == "remove":
        result = manager.remove_package(args.name)
    elif args.command == "list":
        _emit(manager.list_extensions())
        return 0
    elif args.command == "order":
        _emit(manager.load_order())
        return 0
    else:
        _emit(TransactionLogger(config.transactions_path).list_transactions(args.limit))
        return 0

    output = result.model_dump(mode="json")
    if args.remove_unneeded and result.unneeded_system_packages:
        output["removed_system_packages"] = apt.propose_removal(result.unneeded_system_packages)
    _emit(output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ExtRegistryError as e:
        logger.error(f"{args.command} failed: {e}")
        print(sanitize_error_for_user(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
