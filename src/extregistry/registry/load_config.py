# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Load Configuration Writer

Single responsibility: Render extensions.ini from the registry in load order
"""

import logging
from pathlib import Path
from typing import Iterable

from extregistry.models.registry_models import Registry, RuntimeTarget
from .store import atomic_write_text

logger = logging.getLogger(__name__)


def render_load_config(
    registry: Registry,
    order: Iterable[str],
    ext_dir: Path,
    runtime: RuntimeTarget
) -> str:
    """
    Render one load directive per registered library file.

    Packages appear in `order`; names in the order that have no recorded
    files (dependencies that are not managed here) are skipped.
    """
    lines = []
    for package_name in order:
        for file_name in registry.ext_files.get(package_name, []):
            lines.append(f"{runtime.directive}{ext_dir / file_name}\n")
    return "".join(lines)


class LoadConfigWriter:
    """Regenerates the load-configuration file from scratch on every call"""

    def __init__(self, path: Path, runtime: RuntimeTarget = RuntimeTarget.PHP):
        """
        Args:
            path: Path to extensions.ini
            runtime: Runtime whose directive syntax to emit
        """
        self.path = Path(path)
        self.runtime = runtime

    def write(self, registry: Registry, order: Iterable[str], ext_dir: Path) -> str:
        content = render_load_config(registry, order, ext_dir, self.runtime)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self.path, content)
        logger.info(f"Wrote {content.count(chr(10))} load directives to {self.path}")
        return content
