"""
Capture reference substitution for desired-state templates.

A desired state may reference resolved captures with placeholders. They
must be quoted, since a bare ``{{`` opens a YAML flow mapping:

    gw: '{{ capture.default-gw }}'
    port: '{{ capture.default-gw.routes.running.0.next-hop-interface }}'

The first form yields the whole captured document; the trailing path
walks into it, with numeric segments indexing sequences.

A string value that is nothing but a placeholder is replaced by the
referenced subtree. A placeholder inside a longer string is replaced by
the referenced node's text, which must then be a scalar.

Templates with no placeholder text at all are returned byte-for-byte,
even when they are not valid YAML. Otherwise the template is decoded and
only placeholders in string values count: one that appears just in a YAML
comment leaves the template unchanged.
"""

import logging
import re
from collections.abc import Iterator, Mapping

from nmpolicy.errors import (
    PathNotFoundError,
    TypeMismatchError,
    UnresolvedCaptureReferenceError,
)
from nmpolicy.schema import CaptureState
from nmpolicy.tree import (
    LazyDocument,
    MappingNode,
    Node,
    ScalarNode,
    SequenceNode,
    dump_document,
    load_document,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*capture\.([^\s{}]+)\s*\}\}")


def has_references(template: bytes | None) -> bool:
    """
    Check whether raw template bytes contain any placeholder text.

    This is a quick scan that also matches comments; find_references
    confirms it on the decoded document.
    """
    if not template:
        return False
    return PLACEHOLDER_PATTERN.search(template.decode("utf-8", errors="replace")) is not None


def find_references(root: Node | None) -> list[str]:
    """Return the capture names referenced by string values, in document order."""
    names: list[str] = []
    for value in _string_values(root):
        for match in PLACEHOLDER_PATTERN.finditer(value):
            name = match.group(1).split(".", 1)[0]
            if name not in names:
                names.append(name)
    return names


def _string_values(node: Node | None) -> Iterator[str]:
    if isinstance(node, MappingNode):
        for child in node.entries.values():
            yield from _string_values(child)
    elif isinstance(node, SequenceNode):
        for item in node.items:
            yield from _string_values(item)
    elif isinstance(node, ScalarNode) and isinstance(node.value, str):
        yield node.value


def substitute(
    template: bytes | None,
    captures: Mapping[str, CaptureState],
    sort_keys: bool = True,
) -> bytes | None:
    """
    Replace capture placeholders in a desired-state template.

    Args:
        template: Desired-state template bytes
        captures: Resolved captures by name
        sort_keys: Sort mapping keys when serializing the result

    Returns:
        The substituted document, or the template unchanged when it has no
        placeholders

    Raises:
        UnresolvedCaptureReferenceError: If a placeholder names an unknown capture
        PathNotFoundError: If a placeholder path does not exist in the capture
        TypeMismatchError: If a placeholder path does not fit the capture shape
        DocumentError: If the template or a captured state cannot be decoded
    """
    if not has_references(template):
        return template

    root = load_document(template, source="desired state")
    names = find_references(root)
    if not names:
        return template

    for name in names:
        if name not in captures:
            raise UnresolvedCaptureReferenceError(
                capture=name,
                reference=f"{{{{ capture.{name} }}}}",
            )

    documents = {
        name: LazyDocument(state.state, source=f"capture {name}")
        for name, state in captures.items()
    }
    logger.debug("Substituting capture references in desired state")
    return dump_document(_substitute_node(root, documents), sort_keys=sort_keys)


def _substitute_node(node: Node | None, documents: dict[str, LazyDocument]) -> Node | None:
    if isinstance(node, MappingNode):
        return MappingNode({
            key: _substitute_node(child, documents)
            for key, child in node.entries.items()
        })
    if isinstance(node, SequenceNode):
        return SequenceNode(tuple(_substitute_node(item, documents) for item in node.items))
    if isinstance(node, ScalarNode) and isinstance(node.value, str):
        return _substitute_scalar(node.value, documents)
    return node


def _substitute_scalar(value: str, documents: dict[str, LazyDocument]) -> Node:
    whole = PLACEHOLDER_PATTERN.fullmatch(value.strip())
    if whole is not None:
        return _lookup(whole.group(1), whole.group(0), documents)

    def replace(match: re.Match) -> str:
        node = _lookup(match.group(1), match.group(0), documents)
        if not isinstance(node, ScalarNode):
            raise TypeMismatchError(
                segment=match.group(0),
                path=match.group(1),
                expected="scalar",
                actual=node.kind,
            )
        return node.text

    return ScalarNode(PLACEHOLDER_PATTERN.sub(replace, value))


def _lookup(reference: str, placeholder: str, documents: dict[str, LazyDocument]) -> Node:
    name, *path = reference.split(".")
    document = documents.get(name)
    if document is None:
        raise UnresolvedCaptureReferenceError(capture=name, reference=placeholder)

    node: Node = document.root if document.root is not None else MappingNode()
    walked = [name]
    for segment in path:
        walked.append(segment)
        if isinstance(node, MappingNode):
            child = node.get(segment)
        elif isinstance(node, SequenceNode):
            if not segment.isdigit():
                raise TypeMismatchError(
                    segment=segment,
                    path=".".join(walked),
                    expected="sequence index",
                    actual=segment,
                )
            index = int(segment)
            child = node.items[index] if index < len(node.items) else None
        else:
            raise TypeMismatchError(
                segment=segment,
                path=".".join(walked),
                expected="mapping or sequence",
                actual=node.kind,
            )
        if child is None:
            raise PathNotFoundError(segment=segment, path=".".join(walked))
        node = child
    return node
