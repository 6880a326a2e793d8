"""Tests for reconcile/codec.py — YAML/JSON parsing, writing and backups."""

import json
import textwrap

import pytest

from spec_sync.reconcile.codec import JSON, YAML, DocumentCodec, format_for
from spec_sync.reconcile.errors import ValidationError


@pytest.fixture
def codec():
    return DocumentCodec()


class TestParse:
    def test_yaml_keys_normalised_to_strings(self, codec):
        doc = codec.parse(
            textwrap.dedent("""\
            responses:
              200:
                description: OK
              true: yes-key
              null: nothing
            """)
        )

        assert list(doc["responses"]) == ["200", "true", "null"]

    def test_yaml_timestamps_stay_strings(self, codec):
        doc = codec.parse("info:\n  released: 2024-01-15\n")

        assert doc["info"]["released"] == "2024-01-15"

    def test_yaml_order_preserved(self, codec):
        doc = codec.parse("b: 1\na: 2\nc: 3\n")

        assert list(doc) == ["b", "a", "c"]

    def test_json(self, codec):
        assert codec.parse('{"a": [1, {"b": null}]}', JSON) == {"a": [1, {"b": None}]}

    def test_yaml_accepts_json(self, codec):
        assert codec.parse('{"a": 1}') == {"a": 1}

    def test_list_root(self, codec):
        assert codec.parse("- 1\n- 2\n") == [1, 2]

    @pytest.mark.parametrize("text", ["just text", "42", ""])
    def test_scalar_root_rejected(self, codec, text):
        with pytest.raises(ValidationError):
            codec.parse(text)

    def test_malformed_json(self, codec):
        with pytest.raises(json.JSONDecodeError):
            codec.parse("{", JSON)


class TestSerialize:
    def test_json_indented_with_newline(self, codec):
        text = codec.serialize({"a": 1}, JSON)

        assert text == '{\n  "a": 1\n}\n'

    def test_yaml_keeps_order_and_block_style(self, codec):
        text = codec.serialize({"z": 1, "a": {"b": [1, 2]}}, YAML)

        assert text == "z: 1\na:\n  b:\n  - 1\n  - 2\n"

    def test_yaml_repeated_values_not_aliased(self, codec):
        shared = {"type": "string"}
        text = codec.serialize({"a": shared, "b": shared}, YAML)

        assert "&" not in text
        assert "*" not in text

    def test_yaml_unicode_kept(self, codec):
        assert "Café" in codec.serialize({"name": "Café"}, YAML)


class TestFiles:
    def test_format_for_suffix(self, tmp_path):
        assert format_for(tmp_path / "api.yaml") == YAML
        assert format_for(tmp_path / "api.YML") == YAML
        assert format_for(tmp_path / "api.json") == JSON

    def test_write_then_read(self, codec, tmp_path, base_spec):
        for name in ("spec.yaml", "spec.json"):
            path = tmp_path / name
            codec.write(base_spec, path)

            assert codec.read(path) == base_spec

    def test_backup(self, codec, tmp_path):
        spec = tmp_path / "api.yaml"
        spec.write_text("a: 1\n")

        backup = codec.backup(spec)

        assert backup.parent == tmp_path
        assert backup.name.startswith("api.yaml.backup.")
        assert backup.name.rsplit(".", 1)[1].isdigit()
        assert backup.read_text() == "a: 1\n"
