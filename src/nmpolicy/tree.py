"""
Tree model for nmpolicy documents.

Network state is a semi-structured YAML document. Rather than passing raw
dicts and lists around, the engine works on an explicit tagged union:

    - MappingNode: string keys to child nodes (order irrelevant)
    - SequenceNode: ordered list of child nodes
    - ScalarNode: a leaf holding a string, number, bool or null

Scalars keep their original value (so serialization round-trips 254 as an
integer) and expose a canonical text used for equality filters. Mapping
keys are the exception: path segments address them by text, so non-string
YAML keys (254, true) are stored and written back as their canonical
text ('254', 'true').

Nodes are frozen; building a new document never mutates an existing one.
"""

import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

import yaml

from nmpolicy.errors import DocumentError


@dataclass(frozen=True)
class ScalarNode:
    """A leaf value."""

    value: str | int | float | bool | date | None

    kind = "scalar"

    @property
    def text(self) -> str:
        """Canonical text used for comparisons."""
        return canonical_text(self.value)


@dataclass(frozen=True)
class SequenceNode:
    """An ordered list of nodes."""

    items: tuple["Node", ...] = ()

    kind = "sequence"

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class MappingNode:
    """A set of uniquely keyed nodes."""

    entries: dict[str, "Node"] = field(default_factory=dict)

    kind = "mapping"

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> "Node | None":
        return self.entries.get(key)

    def keys(self) -> list[str]:
        return list(self.entries)


Node = Union[MappingNode, SequenceNode, ScalarNode]


def canonical_text(value: Any) -> str:
    """
    Render a scalar value as canonical text.

    Booleans become true/false and null becomes "null", matching how they
    are spelled in YAML. Dates use ISO format. Numbers and strings use
    their str() form.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


# =============================================================================
# Conversion
# =============================================================================


def from_python(data: Any) -> Node:
    """
    Build a node tree from decoded YAML data.

    Mapping keys are replaced by their canonical text, so {254: x} becomes
    {"254": x} and {True: x} becomes {"true": x}.

    Args:
        data: dicts, lists and scalar values as produced by yaml.safe_load

    Returns:
        The root node

    Raises:
        DocumentError: If the data holds a value that is not a document type
    """
    if isinstance(data, dict):
        return MappingNode({canonical_text(k): from_python(v) for k, v in data.items()})
    if isinstance(data, (list, tuple)):
        return SequenceNode(tuple(from_python(item) for item in data))
    if data is None or isinstance(data, (str, int, float, bool, date)):
        return ScalarNode(data)
    raise DocumentError(
        source="document",
        underlying_error=f"unsupported value type {type(data).__name__}",
    )


def to_python(node: Node) -> Any:
    """Convert a node tree back into plain dicts, lists and scalars."""
    if isinstance(node, MappingNode):
        return {key: to_python(child) for key, child in node.entries.items()}
    if isinstance(node, SequenceNode):
        return [to_python(item) for item in node.items]
    return node.value


# =============================================================================
# YAML codec
# =============================================================================


def load_document(data: bytes | str | None, source: str = "document") -> Node | None:
    """
    Decode YAML bytes into a node tree.

    Args:
        data: Raw YAML, or None for an absent document
        source: Label used in error messages

    Returns:
        The root node, or None when data is None or empty

    Raises:
        DocumentError: If the bytes are not valid YAML
    """
    if data is None:
        return None
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentError(source=source, underlying_error=str(e)) from e
    try:
        decoded = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise DocumentError(source=source, underlying_error=str(e)) from e
    if decoded is None:
        return None
    return from_python(decoded)


def dump_document(node: Node | None, sort_keys: bool = True) -> bytes:
    """
    Encode a node tree as YAML bytes.

    Key order is sorted by default so the same tree always yields the
    same bytes.
    """
    data = None if node is None else to_python(node)
    text = yaml.safe_dump(
        data,
        default_flow_style=False,
        sort_keys=sort_keys,
        allow_unicode=True,
    )
    return text.encode("utf-8")


class LazyDocument:
    """
    Raw document bytes decoded on first use.

    The current state only needs decoding when some capture misses the
    cache. Decoding happens at most once, even when captures are resolved
    from several threads.
    """

    def __init__(self, data: bytes | None, source: str = "current state") -> None:
        self.data = data
        self.source = source
        self._lock = threading.Lock()
        self._decoded = False
        self._root: Node | None = None

    @property
    def root(self) -> Node | None:
        """The decoded root node (None for an absent document)."""
        with self._lock:
            if not self._decoded:
                self._root = load_document(self.data, source=self.source)
                self._decoded = True
            return self._root
