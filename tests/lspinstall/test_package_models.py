"""
Tests for the declaration models.
"""

import pytest
from pydantic import ValidationError

from lspinstall.package_models import (
    PackageSpec,
    RegistryEntry,
    RegistrySpec,
    format_validation_error,
    render_command,
)


class TestPackageSpec:
    def test_shorthand_name(self):
        """Test a bare name is shorthand for a table."""
        spec = PackageSpec.parse_entry("lua-language-server")
        assert spec.name == "lua-language-server"
        assert spec.version is None
        assert spec.filetypes is None
        assert spec.dependencies == []
        assert spec.post_install_hooks == []

    def test_full_table(self):
        """Test a table with every option."""
        spec = PackageSpec.parse_entry(
            {
                "name": "jdtls",
                "version": "1.31.0",
                "filetypes": ["java"],
                "dependencies": ["java-debug-adapter", {"name": "lombok", "version": "1.18.30"}],
                "post_install_hooks": [["chmod", "+x", "bin/jdtls"]],
            }
        )

        assert [dep.name for dep in spec.dependencies] == ["java-debug-adapter", "lombok"]
        assert spec.dependencies[1].version == "1.18.30"
        assert spec.post_install_hooks == [["chmod", "+x", "bin/jdtls"]]

    def test_callable_hooks_are_accepted(self):
        """Test functions are accepted as hooks."""
        def hook(node):
            return None

        spec = PackageSpec(name="pyright", post_install_hooks=[hook, ["npm", "rebuild"]])
        assert spec.post_install_hooks[0] is hook

    def test_existing_spec_is_returned(self):
        """Test a PackageSpec entry is returned as is."""
        spec = PackageSpec(name="pyright")
        assert PackageSpec.parse_entry(spec) is spec

    @pytest.mark.parametrize(
        "entry",
        [
            {"version": "1.0"},
            {"name": ""},
            {"name": "pyright", "filetypes": "python"},
            {"name": "pyright", "post_install_hooks": [[]]},
            {"name": "pyright", "post_install_hooks": ["npm rebuild"]},
            {"name": "pyright", "post_install_hooks": [["npm", 1]]},
            {"name": "pyright", "dependencies": [3]},
            {"name": "pyright", "unknown": True},
        ],
    )
    def test_invalid_entries(self, entry):
        """Test invalid declarations are rejected."""
        with pytest.raises(ValidationError):
            PackageSpec.parse_entry(entry)

    def test_error_location_uses_one_based_indices(self):
        """Test error locations use 1-based indices."""
        with pytest.raises(ValidationError) as excinfo:
            PackageSpec.parse_entry({"name": "jdtls", "dependencies": ["lombok", {"version": "1"}]})

        assert format_validation_error(excinfo.value).startswith("dependencies[2].name:")


class TestRegistryEntry:
    """Tests for RegistryEntry model."""

    def test_latest_is_required(self):
        """Test latest or latest_version is required."""
        with pytest.raises(ValidationError):
            RegistryEntry(install=["npm", "i"], installed_version=["npm", "ls"])

    def test_invalid_pattern(self):
        """Test an invalid version_pattern is rejected."""
        with pytest.raises(ValidationError):
            RegistryEntry(
                install=["x"], installed_version=["x"], latest="1", version_pattern="(unclosed"
            )

    def test_parse_version_first_line(self):
        """Test the first output line is the version without a pattern."""
        entry = RegistryEntry(install=["x"], installed_version=["x"], latest="1")
        assert entry.parse_version("0.4.1\nextra\n") == "0.4.1"
        assert entry.parse_version("  \n") is None

    def test_parse_version_with_pattern(self):
        """Test the version is extracted with the pattern."""
        entry = RegistryEntry(
            install=["x"], installed_version=["x"], latest="1", version_pattern=r"pyright@(\S+)"
        )
        assert entry.parse_version("/prefix\n`-- pyright@1.1.380\n") == "1.1.380"
        assert entry.parse_version("(empty)") is None

    def test_registry_defaults(self):
        """Test the registry section defaults."""
        spec = RegistrySpec()
        assert spec.refresh is None
        assert spec.refresh_ttl == 3600
        assert spec.packages == {}


def test_render_command_replaces_known_placeholders_only():
    """Test only known placeholders are replaced."""
    argv = render_command(
        ["npm", "i", "--prefix", "{install_dir}", "{name}@{version}", "{other}"],
        name="pyright",
        version="1.1.380",
        install_dir="/opt/pyright",
    )
    assert argv == ["npm", "i", "--prefix", "/opt/pyright", "pyright@1.1.380", "{other}"]
