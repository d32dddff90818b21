# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit Tests for the load configuration writer
"""

from pathlib import Path

from extregistry.models.registry_models import Registry, RuntimeTarget
from extregistry.registry.load_config import LoadConfigWriter, render_load_config


class TestRenderLoadConfig:
    """Test suite for render_load_config"""

    registry = Registry(ext_files={"acme/p": ["p1.so", "p2.so"], "acme/q": ["q.so"]})

    def test_php_directives_in_order(self):
        content = render_load_config(self.registry, ["acme/q", "acme/p"], Path("/opt/ext"), RuntimeTarget.PHP)

        assert content == (
            "extension = /opt/ext/q.so\n"
            "extension = /opt/ext/p1.so\n"
            "extension = /opt/ext/p2.so\n"
        )

    def test_hhvm_directives(self):
        content = render_load_config(self.registry, ["acme/q"], Path("/opt/ext"), RuntimeTarget.HHVM)

        assert content == "hhvm.extensions[] = /opt/ext/q.so\n"

    def test_skips_unmanaged_names(self):
        """Ordered names without recorded files produce no lines"""
        content = render_load_config(self.registry, ["vendor/unmanaged"], Path("/opt/ext"), RuntimeTarget.PHP)

        assert content == ""


class TestLoadConfigWriter:
    """Test suite for LoadConfigWriter"""

    def test_regenerates_whole_file(self, tmp_path):
        """Every write replaces the previous content"""
        writer = LoadConfigWriter(tmp_path / "extensions.ini")
        registry = Registry(ext_files={"acme/p": ["p.so"]})

        writer.write(registry, ["acme/p"], tmp_path)
        writer.write(Registry(), [], tmp_path)

        assert writer.path.read_text() == ""
