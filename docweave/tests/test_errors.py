"""Tests for docweave error types."""

from docweave.errors import ConfigError, DocweaveError, StructuralError


class TestErrorTypes:
    """Tests for the shared error base."""

    def test_default_types(self):
        assert ConfigError("bad").error_type == "config_invalid"
        assert StructuralError("bad").error_type == "structure_invalid"

    def test_explicit_type_wins(self):
        assert StructuralError("gone", error_type="sample_missing").to_json()["error"] == "sample_missing"

    def test_to_json_omits_missing_location(self):
        assert StructuralError("bad").to_json() == {"error": "structure_invalid", "message": "bad"}
        assert StructuralError("bad", file="a.md", line=4).to_json() == {
            "error": "structure_invalid",
            "message": "bad",
            "file": "a.md",
            "line": 4,
        }

    def test_both_share_the_base(self):
        assert issubclass(ConfigError, DocweaveError)
        assert issubclass(StructuralError, DocweaveError)
        assert not issubclass(ConfigError, StructuralError)
