"""
Unit tests for core.yaml module.

Tests:
- load_yaml() parsing, empty files, missing files
- Non-mapping documents rejected with ConfigurationError
"""

import pytest
import yaml

from bangerbot.core import ConfigurationError, load_yaml


class TestLoadYaml:
    def test_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("interval: 30\nrelays:\n  - wss://nos.lol\n")
        assert load_yaml(path) == {"interval": 30, "relays": ["wss://nos.lol"]}

    def test_str_path(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("a: 1\n")
        assert load_yaml(str(path)) == {"a": 1}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")

    def test_list_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_yaml(path)

    def test_invalid_syntax(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [1, 2\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml(path)

    def test_safe_load_rejects_python_tags(self, tmp_path):
        path = tmp_path / "unsafe.yaml"
        path.write_text("a: !!python/object/apply:os.system ['true']\n")
        with pytest.raises(yaml.YAMLError):
            load_yaml(path)
