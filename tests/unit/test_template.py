"""
Unit tests for capture reference substitution.

Tests cover:
- Passthrough of templates without references
- Whole-document and path references
- References embedded in longer strings
- Unknown captures and bad paths
"""

import pytest
import yaml

from nmpolicy.errors import (
    DocumentError,
    PathNotFoundError,
    TypeMismatchError,
    UnresolvedCaptureReferenceError,
)
from nmpolicy.schema import CaptureState
from nmpolicy.template import find_references, has_references, substitute
from nmpolicy.tree import load_document


@pytest.fixture
def captures(default_route_capture: bytes) -> dict[str, CaptureState]:
    """A resolved default-gateway capture."""
    return {"default-gw": CaptureState(state=default_route_capture)}


class TestDetection:
    """Tests for has_references/find_references."""

    def test_no_references(self) -> None:
        assert has_references(b"interfaces: []\n") is False
        assert has_references(None) is False
        assert has_references(b"") is False

    def test_reference(self) -> None:
        assert has_references(b"x: '{{ capture.gw }}'\n") is True

    def test_reference_without_spaces(self) -> None:
        assert has_references(b"x: '{{capture.gw}}'\n") is True

    def test_find_references(self) -> None:
        """Names are listed once, in order of appearance."""
        template = b"a: '{{ capture.b.x }}'\nc: '{{ capture.a }}'\nd: '{{ capture.b }}'\n"
        assert find_references(load_document(template)) == ["b", "a"]

    def test_comments_ignored(self) -> None:
        """Placeholders in comments are not references."""
        template = b"# copy of {{ capture.gw }}\nx: 1\n"
        assert has_references(template) is True
        assert find_references(load_document(template)) == []

    def test_non_string_values_ignored(self) -> None:
        """Numbers, booleans and nulls hold no references."""
        assert find_references(load_document(b"x: [1, true, null]\n")) == []


class TestPassthrough:
    """Tests for templates without references."""

    def test_bytes_unchanged(self, captures: dict[str, CaptureState]) -> None:
        """Templates without placeholders come back byte-for-byte."""
        template = b"this is not a legal yaml format!\n"
        assert substitute(template, captures) is template

    def test_none(self) -> None:
        """An absent template stays absent."""
        assert substitute(None, {}) is None

    def test_formatting_kept(self) -> None:
        """Unsorted keys and comments survive when nothing is substituted."""
        template = b"# comment\nz: 1\na: 2\n"
        assert substitute(template, {}) == template

    def test_placeholder_in_comment(self) -> None:
        """A placeholder that only appears in a comment changes nothing."""
        template = b"# see {{ capture.gw }}\nz: 1\na: 2\n"
        assert substitute(template, {}) is template


class TestSubstitution:
    """Tests for replacing references."""

    def test_whole_capture(self, captures: dict[str, CaptureState]) -> None:
        """A value that is only a placeholder becomes the captured document."""
        template = b"gw: '{{ capture.default-gw }}'\n"
        result = yaml.safe_load(substitute(template, captures))
        assert result["gw"]["routes"]["running"][0]["destination"] == "0.0.0.0/0"

    def test_path_into_capture(self, captures: dict[str, CaptureState]) -> None:
        """A trailing path selects a node, numeric segments index sequences."""
        template = b"""interfaces:
- name: '{{ capture.default-gw.routes.running.0.next-hop-interface }}'
  type: ethernet
"""
        result = yaml.safe_load(substitute(template, captures))
        assert result == {"interfaces": [{"name": "eth1", "type": "ethernet"}]}

    def test_subtree_keeps_types(self, captures: dict[str, CaptureState]) -> None:
        """Structured substitution keeps scalar types."""
        template = b"table: '{{ capture.default-gw.routes.running.0.table-id }}'\n"
        result = yaml.safe_load(substitute(template, captures))
        assert result == {"table": 254}

    def test_embedded_reference(self, captures: dict[str, CaptureState]) -> None:
        """A placeholder inside a longer string is replaced by scalar text."""
        template = b"description: 'gateway via {{ capture.default-gw.routes.running.0.next-hop-address }}'\n"
        result = yaml.safe_load(substitute(template, captures))
        assert result == {"description": "gateway via 192.168.100.1"}

    def test_embedded_non_scalar(self, captures: dict[str, CaptureState]) -> None:
        """Embedding a non-scalar inside a string is a type mismatch."""
        template = b"description: 'routes {{ capture.default-gw.routes }}'\n"
        with pytest.raises(TypeMismatchError):
            substitute(template, captures)

    def test_output_is_sorted(self, captures: dict[str, CaptureState]) -> None:
        """Substituted output is deterministic YAML."""
        template = b"z: '{{ capture.default-gw.routes.running.0.table-id }}'\na: 1\n"
        assert substitute(template, captures) == b"a: 1\nz: 254\n"

    def test_non_string_scalars_untouched(self, captures: dict[str, CaptureState]) -> None:
        """Numbers and booleans are left as they are."""
        template = b"a: 1\nb: true\nc: '{{ capture.default-gw.routes.running.0.table-id }}'\n"
        result = yaml.safe_load(substitute(template, captures))
        assert result == {"a": 1, "b": True, "c": 254}

    @pytest.mark.parametrize("state,expected", [(b"[]\n", []), (b"{}\n", {})])
    def test_empty_capture(self, state: bytes, expected: list | dict) -> None:
        """Empty sequences and mappings keep their type."""
        captures = {"gw": CaptureState(state=state)}
        result = yaml.safe_load(substitute(b"x: '{{ capture.gw }}'\n", captures))
        assert result == {"x": expected}


class TestSubstitutionErrors:
    """Tests for references that cannot be resolved."""

    def test_unknown_capture(self, captures: dict[str, CaptureState]) -> None:
        """Referencing an unknown capture is an unresolved reference."""
        with pytest.raises(UnresolvedCaptureReferenceError) as exc_info:
            substitute(b"x: '{{ capture.missing }}'\n", captures)
        assert exc_info.value.capture == "missing"

    def test_unknown_capture_next_to_comment(self, captures: dict[str, CaptureState]) -> None:
        """A commented placeholder does not hide a real unknown reference."""
        template = b"# {{ capture.default-gw }}\nx: '{{ capture.missing.a }}'\n"
        with pytest.raises(UnresolvedCaptureReferenceError) as exc_info:
            substitute(template, captures)
        assert exc_info.value.capture == "missing"

    def test_missing_path(self, captures: dict[str, CaptureState]) -> None:
        """A path that does not exist in the capture is not found."""
        with pytest.raises(PathNotFoundError):
            substitute(b"x: '{{ capture.default-gw.routes.config }}'\n", captures)

    def test_index_out_of_range(self, captures: dict[str, CaptureState]) -> None:
        """Sequence indexes past the end are not found."""
        with pytest.raises(PathNotFoundError):
            substitute(b"x: '{{ capture.default-gw.routes.running.5 }}'\n", captures)

    def test_non_numeric_index(self, captures: dict[str, CaptureState]) -> None:
        """Sequences can only be indexed by number."""
        with pytest.raises(TypeMismatchError):
            substitute(b"x: '{{ capture.default-gw.routes.running.first }}'\n", captures)

    def test_path_through_scalar(self, captures: dict[str, CaptureState]) -> None:
        """Scalars have no children."""
        with pytest.raises(TypeMismatchError):
            substitute(
                b"x: '{{ capture.default-gw.routes.running.0.table-id.x }}'\n",
                captures,
            )

    def test_invalid_template(self, captures: dict[str, CaptureState]) -> None:
        """A template with references must be valid YAML."""
        with pytest.raises(DocumentError) as exc_info:
            substitute(b"{{ capture.default-gw }} is: not: yaml\n", captures)
        assert exc_info.value.source == "desired state"

    def test_unquoted_placeholder(self, captures: dict[str, CaptureState]) -> None:
        """An unquoted placeholder is a YAML flow mapping, not a string."""
        with pytest.raises(DocumentError):
            substitute(b"x: {{ capture.default-gw }}\n", captures)

    def test_invalid_captured_state(self) -> None:
        """A referenced capture whose state is not YAML cannot be used."""
        captures = {"bad": CaptureState(state=b"this is: not: yaml")}
        with pytest.raises(DocumentError) as exc_info:
            substitute(b"x: '{{ capture.bad }}'\n", captures)
        assert exc_info.value.source == "capture bad"
