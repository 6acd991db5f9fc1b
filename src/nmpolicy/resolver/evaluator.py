"""
Path evaluator for capture expressions.

Walks a document tree segment by segment and returns a subtree that
mirrors the original shape down to the selected node:

    routes.running.destination=="0.0.0.0/0"

against a routes document yields

    routes:
      running:
      - destination: 0.0.0.0/0
        next-hop-address: 192.168.100.1
        ...

Rules:
    - A plain segment looks up a key in a mapping.
    - A filtered segment keeps the elements of the current sequence whose
      field equals the literal. Kept elements are returned whole.
    - After a filter, another filter narrows the same sequence and a plain
      segment is applied to every surviving element.
    - Shape mismatches raise TypeMismatchError rather than matching nothing.
"""

from nmpolicy.errors import PathNotFoundError, TypeMismatchError
from nmpolicy.expression import CaptureExpression, PathSegment
from nmpolicy.tree import MappingNode, Node, ScalarNode, SequenceNode


def evaluate(expression: CaptureExpression, root: Node | None) -> Node:
    """
    Evaluate a parsed expression against a document.

    Args:
        expression: The parsed capture expression
        root: Root of the document; None is treated as an empty mapping

    Returns:
        The mirrored subtree selected by the expression

    Raises:
        PathNotFoundError: If a segment names a key that does not exist
        TypeMismatchError: If a node does not have the shape a segment needs
    """
    if root is None:
        root = MappingNode()
    return _walk(expression.segments, 0, root, projecting=False)


def _walk(
    segments: tuple[PathSegment, ...],
    index: int,
    node: Node,
    projecting: bool,
) -> Node:
    if index == len(segments):
        return node

    segment = segments[index]
    if segment.filter is not None:
        return _walk_filter(segments, index, node)

    if isinstance(node, MappingNode):
        child = node.get(segment.name)
        if child is None:
            raise PathNotFoundError(
                segment=segment.name,
                path=_path(segments, index),
            )
        return MappingNode({segment.name: _walk(segments, index + 1, child, False)})

    if isinstance(node, SequenceNode) and projecting:
        return SequenceNode(
            tuple(_walk(segments, index, item, False) for item in node.items)
        )

    raise TypeMismatchError(
        segment=segment.name,
        path=_path(segments, index),
        expected="mapping",
        actual=node.kind,
    )


def _walk_filter(
    segments: tuple[PathSegment, ...],
    index: int,
    node: Node,
) -> Node:
    segment = segments[index]
    eq_filter = segment.filter
    path = _path(segments, index)

    if not isinstance(node, SequenceNode):
        raise TypeMismatchError(
            segment=str(segment),
            path=path,
            expected="sequence",
            actual=node.kind,
        )

    kept = []
    for item in node.items:
        if not isinstance(item, MappingNode):
            raise TypeMismatchError(
                segment=str(segment),
                path=path,
                expected="mapping",
                actual=item.kind,
            )
        value = item.get(eq_filter.field)
        if value is None:
            raise PathNotFoundError(segment=eq_filter.field, path=path)
        if not isinstance(value, ScalarNode):
            raise TypeMismatchError(
                segment=str(segment),
                path=path,
                expected="scalar",
                actual=value.kind,
            )
        if value.text == eq_filter.literal:
            kept.append(item)

    return _walk(segments, index + 1, SequenceNode(tuple(kept)), projecting=True)


def _path(segments: tuple[PathSegment, ...], index: int) -> str:
    return ".".join(str(segment) for segment in segments[: index + 1])
