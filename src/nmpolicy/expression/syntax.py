"""
Syntax tree for capture expressions.

An expression such as

    routes.running.destination=="0.0.0.0/0"

parses into three path segments; the last one carries an equality filter
on the "destination" field.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EqFilter:
    """Keep only sequence elements whose field equals the literal text."""

    field: str
    literal: str

    def __str__(self) -> str:
        return f'{self.field}=="{self.literal}"'


@dataclass(frozen=True)
class PathSegment:
    """
    One dot-separated step of a capture path.

    Attributes:
        name: Key to look up, or the filtered field when filter is set
        position: Offset of the segment in the source expression
        filter: Equality filter applied to the current sequence
    """

    name: str
    position: int = 0
    filter: EqFilter | None = None

    @property
    def is_filter(self) -> bool:
        return self.filter is not None

    def __str__(self) -> str:
        if self.filter is not None:
            return str(self.filter)
        return self.name


@dataclass(frozen=True)
class CaptureExpression:
    """A parsed capture expression."""

    source: str
    segments: tuple[PathSegment, ...]

    def __str__(self) -> str:
        return ".".join(str(segment) for segment in self.segments)
