# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Metadata

Reads extension package descriptions (composer.json style) and extracts the
system packages and inter-extension requirements the registry needs.

System packages are declared per distribution and release:

    "extra": {"apt-get": {"Ubuntu": {"22.04": ["libgeoip-dev"]}}}
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from extregistry.core.errors import PackageMetadataMissingError
from extregistry.models.registry_models import ExtensionPackage

logger = logging.getLogger(__name__)

SYSTEM_PACKAGES_KEY = "apt-get"


def system_packages_for(
    package_name: str,
    extra: Optional[Dict[str, Any]],
    distro: str,
    release: str
) -> List[str]:
    """
    Look up the system packages a package needs on this distro/release.

    Raises:
        PackageMetadataMissingError: Naming the first missing level
    """
    declared = (extra or {}).get(SYSTEM_PACKAGES_KEY)
    if not declared:
        raise PackageMetadataMissingError(
            f"Error while installing {package_name}: extension packages must define "
            f"{SYSTEM_PACKAGES_KEY} in their extra key",
            package_name=package_name,
            field=SYSTEM_PACKAGES_KEY
        )

    if not declared.get(distro):
        raise PackageMetadataMissingError(
            f"Error while installing {package_name}: no {SYSTEM_PACKAGES_KEY} entry for distribution {distro}",
            package_name=package_name,
            field=f"{SYSTEM_PACKAGES_KEY}.{distro}"
        )

    packages = declared[distro].get(release)
    if not packages:
        raise PackageMetadataMissingError(
            f"Error while installing {package_name}: no {SYSTEM_PACKAGES_KEY} entry for {distro} {release}",
            package_name=package_name,
            field=f"{SYSTEM_PACKAGES_KEY}.{distro}.{release}"
        )

    if isinstance(packages, str):
        packages = packages.split()
    return list(packages)


def required_extensions(require: Optional[Dict[str, Any]]) -> List[str]:
    """
    Names from a require section that are extension packages.

    Platform requirements (php, ext-*, lib-*) are never extensions managed
    here.
    """
    return sorted(name for name in (require or {}) if "/" in name)


def load_package_file(
    path: Path,
    distro: str,
    release: str,
    source_directory: Optional[Path] = None
) -> ExtensionPackage:
    """
    Build an ExtensionPackage from a composer.json-like description.

    Args:
        path: Path to the JSON description
        distro: Distribution id (lsb_release -i)
        release: Release (lsb_release -r)
        source_directory: Build root (defaults to the file's directory)

    Raises:
        PackageMetadataMissingError: If the file is unreadable or incomplete
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise PackageMetadataMissingError(f"Cannot read package description {path}: {e}", field="file")

    name = data.get("name") if isinstance(data, dict) else None
    if not name:
        raise PackageMetadataMissingError(f"Package description {path} has no name", field="name")

    package = ExtensionPackage(
        name=name,
        system_packages=system_packages_for(name, data.get("extra"), distro, release),
        requires=required_extensions(data.get("require")),
        source_directory=source_directory or path.parent,
    )
    logger.debug(f"Loaded package description for {name}: {package.system_packages}")
    return package
