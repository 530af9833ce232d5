"""Unit tests for CLI utility functions."""

import json

import pytest

from shopcheck.utils import parse_variables


class TestParseVariables:
    """Tests for parse_variables()."""

    def test_flags(self):
        variables = parse_variables(("email=a@b.c", "password=secret=1"), None)
        assert variables == {"email": "a@b.c", "password": "secret=1"}

    def test_json_values(self):
        variables = parse_variables(("age=25", "tags=[\"a\"]", "flag=true"), None)
        assert variables == {"age": 25, "tags": ["a"], "flag": True}

    def test_flags_override_file(self, tmp_path):
        var_file = tmp_path / "vars.yaml"
        var_file.write_text("email: file@b.c\npassword: password123\n")

        variables = parse_variables(("email=flag@b.c",), str(var_file))

        assert variables == {"email": "flag@b.c", "password": "password123"}

    def test_json_file(self, tmp_path):
        var_file = tmp_path / "vars.json"
        var_file.write_text(json.dumps({"vendor_email": "v@b.c"}))
        assert parse_variables((), str(var_file)) == {"vendor_email": "v@b.c"}

    def test_invalid_flag(self):
        with pytest.raises(ValueError, match="Expected KEY=VALUE"):
            parse_variables(("email",), None)

    def test_unsupported_file(self, tmp_path):
        var_file = tmp_path / "vars.txt"
        var_file.write_text("email=a")
        with pytest.raises(ValueError, match="Unsupported"):
            parse_variables((), str(var_file))

    def test_file_must_be_mapping(self, tmp_path):
        var_file = tmp_path / "vars.yaml"
        var_file.write_text("- a\n")
        with pytest.raises(ValueError, match="mapping"):
            parse_variables((), str(var_file))
