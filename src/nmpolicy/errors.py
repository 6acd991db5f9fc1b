"""
Exception hierarchy for nmpolicy.

All nmpolicy exceptions inherit from NMPolicyError, allowing callers to catch
every policy failure with a single except clause.

Exception Categories:
    - ParseError: Malformed capture expression
    - PathNotFoundError: A path segment has no matching key
    - TypeMismatchError: A node does not have the expected shape
    - UnresolvedCaptureReferenceError: Template references an unknown capture
    - DocumentError: Bytes that should hold a document cannot be decoded

Any of these aborts the whole state generation. There is no partial result.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Expression errors: 1xxx
ERROR_EXPRESSION_PARSE = 1001

# Evaluation errors: 2xxx
ERROR_PATH_NOT_FOUND = 2001
ERROR_TYPE_MISMATCH = 2002

# Template errors: 3xxx
ERROR_UNRESOLVED_CAPTURE_REFERENCE = 3001

# Document errors: 4xxx
ERROR_DOCUMENT_DECODE = 4001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class NMPolicyError(Exception):
    """
    Base exception for all nmpolicy errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Expression Errors
# =============================================================================


@dataclass
class ParseError(NMPolicyError):
    """
    Raised when a capture expression is malformed.

    The message renders the expression with a caret under the failing
    position:

        invalid expression: empty path segment
        | routes..running
        | .......^

    Attributes:
        expression: The expression that failed to parse
        position: Zero-based character offset of the failure
        reason: Short description of what is wrong
    """

    expression: str = ""
    position: int = 0
    reason: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"invalid expression: {self.reason}\n"
                f"| {self.expression}\n"
                f"| {'.' * self.position}^"
            )
        if self.code == 0:
            self.code = ERROR_EXPRESSION_PARSE
        self.context.update({
            "expression": self.expression,
            "position": self.position,
            "reason": self.reason,
        })


# =============================================================================
# Evaluation Errors
# =============================================================================


@dataclass
class EvaluationError(NMPolicyError):
    """
    Base class for errors raised while walking a document.

    Attributes:
        segment: The path segment being applied when evaluation failed
        path: The dotted path walked so far, including the failing segment
    """

    segment: str = ""
    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        self.context.update({
            "segment": self.segment,
            "path": self.path,
        })


@dataclass
class PathNotFoundError(EvaluationError):
    """Raised when a path segment has no matching key."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Path not found: {self.path or self.segment}"
        if self.code == 0:
            self.code = ERROR_PATH_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Check the capture expression against the current state"
        super().__post_init__()


@dataclass
class TypeMismatchError(EvaluationError):
    """
    Raised when a node does not have the shape a segment requires.

    Attributes:
        expected: The expected node kind (mapping, sequence, scalar)
        actual: The node kind actually found
    """

    expected: str = ""
    actual: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = (
                f"Type mismatch at {self.path or self.segment}: "
                f"expected {self.expected}, got {self.actual}"
            )
        if self.code == 0:
            self.code = ERROR_TYPE_MISMATCH
        super().__post_init__()
        self.context.update({
            "expected": self.expected,
            "actual": self.actual,
        })


# =============================================================================
# Template Errors
# =============================================================================


@dataclass
class UnresolvedCaptureReferenceError(NMPolicyError):
    """
    Raised when the desired state references a capture that was not resolved.

    Attributes:
        capture: Name of the referenced capture
        reference: The placeholder text as written in the template
    """

    capture: str = ""
    reference: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unresolved capture reference: {self.capture}"
        if self.code == 0:
            self.code = ERROR_UNRESOLVED_CAPTURE_REFERENCE
        if not self.suggestion:
            self.suggestion = "Declare the capture under 'capture' in the policy"
        self.context.update({
            "capture": self.capture,
            "reference": self.reference,
        })


# =============================================================================
# Document Errors
# =============================================================================


@dataclass
class DocumentError(NMPolicyError):
    """
    Raised when bytes expected to hold a YAML document cannot be decoded.

    Attributes:
        source: What was being decoded (e.g. "current state", "capture cap0")
        underlying_error: The decoder's error message
    """

    source: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to decode {self.source}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_DOCUMENT_DECODE
        self.context.update({
            "source": self.source,
            "underlying_error": self.underlying_error,
        })
