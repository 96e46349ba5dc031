"""Tests for configuration module."""

import pytest
import yaml

from tarpkg.common.config import (
    DEFAULT_CACHE_DIR,
    DEFAULT_INSTALLED_DIR,
    PkgConfig,
    build_mirror_list,
    default_target,
    load_config,
    load_mirrors,
    load_typed_config,
    parse_config,
    parse_logging_config,
)


class TestLoadMirrors:
    """Tests for reading the mirror list directory."""

    def test_files_in_sorted_order(self, tmp_path):
        """Test files are read in name order, lines in file order."""
        (tmp_path / "20-extra").write_text("https://c.example.org\n")
        (tmp_path / "10-main").write_text(
            "https://a.example.org\nhttps://b.example.org\n"
        )

        mirrors = load_mirrors(str(tmp_path))

        assert mirrors == [
            "https://a.example.org",
            "https://b.example.org",
            "https://c.example.org",
        ]

    def test_comments_and_blank_lines_skipped(self, tmp_path):
        """Test comment and empty lines are not mirrors."""
        (tmp_path / "mirrors").write_text(
            "# primary\nhttps://a.example.org\n\n   \n#https://old.example.org\n"
        )

        assert load_mirrors(str(tmp_path)) == ["https://a.example.org"]

    def test_subdirectories_ignored(self, tmp_path):
        """Test only regular files contribute mirrors."""
        (tmp_path / "nested").mkdir()
        (tmp_path / "nested" / "mirrors").write_text("https://nested.example.org\n")
        (tmp_path / "mirrors").write_text("https://a.example.org\n")

        assert load_mirrors(str(tmp_path)) == ["https://a.example.org"]

    def test_missing_directory(self, tmp_path):
        """Test a missing directory yields no mirrors."""
        assert load_mirrors(str(tmp_path / "absent")) == []

    def test_build_mirror_list_appends_config_mirrors(self, tmp_path):
        """Test config file mirrors come after directory mirrors."""
        (tmp_path / "mirrors").write_text("https://a.example.org\n")
        config = PkgConfig(mirrors_dir=str(tmp_path), mirrors=["https://z.example.org"])

        assert build_mirror_list(config) == [
            "https://a.example.org",
            "https://z.example.org",
        ]


class TestParseConfig:
    """Tests for PkgConfig parsing."""

    def test_defaults(self):
        """Test an empty config uses defaults."""
        config = parse_config({})

        assert config.cache_dir == DEFAULT_CACHE_DIR
        assert config.installed_dir == DEFAULT_INSTALLED_DIR
        assert config.install_root == "/"
        assert config.timeout == 5
        assert config.progress is True
        assert config.mirrors == []
        assert config.target == default_target()
        assert config.logging.level == "INFO"
        assert not config.logging.file_logging

    def test_full_config(self):
        """Test all keys are read."""
        config = parse_config(
            {
                "cache_dir": "/var/cache/pkg",
                "mirrors_dir": "/etc/mirrors",
                "mirrors": ["https://a.example.org"],
                "target": "aarch64-unknown-redox",
                "install_root": "/mnt/root",
                "installed_dir": "/mnt/root/pkg",
                "timeout": 10,
                "progress": False,
                "logging": {"level": "DEBUG", "file_logging": True, "log_dir": "/tmp/logs"},
            }
        )

        assert config.cache_dir == "/var/cache/pkg"
        assert config.mirrors_dir == "/etc/mirrors"
        assert config.mirrors == ["https://a.example.org"]
        assert config.target == "aarch64-unknown-redox"
        assert config.install_root == "/mnt/root"
        assert config.installed_dir == "/mnt/root/pkg"
        assert config.timeout == 10.0
        assert config.progress is False
        assert config.logging.level == "DEBUG"
        assert config.logging.file_logging
        assert config.logging.log_dir == "/tmp/logs"

    def test_mirrors_must_be_list(self):
        """Test a scalar mirrors value is rejected."""
        with pytest.raises(TypeError):
            parse_config({"mirrors": "https://a.example.org"})

    def test_parse_logging_defaults(self):
        """Test logging config defaults."""
        config = parse_logging_config({})

        assert config.level == "INFO"
        assert config.log_dir == "/var/log/tarpkg"


class TestLoadConfig:
    """Tests for loading config files."""

    def test_load_valid_config(self, tmp_path):
        """Test loading valid YAML config."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"cache_dir": "/srv/cache", "timeout": 3}))

        config = load_config(str(config_file))

        assert config["cache_dir"] == "/srv/cache"
        assert config["timeout"] == 3

    def test_load_nonexistent_config(self):
        """Test loading nonexistent config raises error."""
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/config.yaml")

    def test_load_empty_config(self, tmp_path):
        """Test an empty file is an empty mapping."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert load_config(str(config_file)) == {}

    def test_non_mapping_root(self, tmp_path):
        """Test a list at the root is rejected."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(TypeError):
            load_config(str(config_file))

    def test_env_vars_expanded(self, tmp_path, monkeypatch):
        """Test environment variables in values are expanded."""
        monkeypatch.setenv("PKG_CACHE", "/srv/pkgcache")
        config_file = tmp_path / "config.yaml"
        config_file.write_text("cache_dir: $PKG_CACHE/tar\nmirrors:\n  - ${PKG_CACHE}\n")

        config = load_config(str(config_file))

        assert config["cache_dir"] == "/srv/pkgcache/tar"
        assert config["mirrors"] == ["/srv/pkgcache"]

    def test_typed_config_missing_file_uses_defaults(self, tmp_path):
        """Test a missing file falls back to defaults."""
        config = load_typed_config(str(tmp_path / "absent.yaml"))

        assert isinstance(config, PkgConfig)
        assert config.cache_dir == DEFAULT_CACHE_DIR

    def test_typed_config(self, tmp_path):
        """Test loading typed config."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("target: i686-unknown-redox\n")

        config = load_typed_config(str(config_file))

        assert config.target == "i686-unknown-redox"
