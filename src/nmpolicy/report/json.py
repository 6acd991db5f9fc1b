"""
JSON report generator for nmpolicy.

Generates structured JSON output describing a generation for programmatic
consumption: top-level meta info, one entry per capture, and the desired
state.

Design Principles:
    - Consistent schema: Same structure for every generation
    - Human-readable keys: Descriptive snake_case names
    - ISO timestamps: Standard datetime format
"""

import json
from datetime import datetime
from typing import Any

from nmpolicy.engine import GenerationResult


def generate_json_report(result: GenerationResult, indent: int = 2) -> str:
    """
    Generate a JSON report for a generation.

    Args:
        result: The generation to report on
        indent: JSON indentation level (default: 2)

    Returns:
        JSON string with the full report
    """
    report = build_report_dict(result)
    return json.dumps(report, indent=indent, default=_json_serializer)


def build_report_dict(result: GenerationResult) -> dict[str, Any]:
    """
    Build a report dictionary for a generation.

    Args:
        result: The generation to report on

    Returns:
        Dictionary with the full report
    """
    state = result.state
    captures = []
    for outcome in result.captures:
        capture_state = state.cache.capture[outcome.name]
        captures.append({
            "name": outcome.name,
            "expression": outcome.expression,
            "source": "cache" if outcome.used_cache else "resolved",
            "version": capture_state.meta_info.version,
            "timestamp": capture_state.meta_info.timestamp,
            "duration_ms": round(outcome.duration_ms, 3),
            "state": capture_state.state.decode("utf-8", errors="replace"),
        })

    desired_state = None
    if state.desired_state is not None:
        desired_state = state.desired_state.decode("utf-8", errors="replace")

    return {
        "report_version": "1.0",
        "meta_info": {
            "version": state.meta_info.version,
            "timestamp": state.meta_info.timestamp,
        },
        "summary": {
            "total_captures": len(result.captures),
            "cached_captures": result.cached_count,
            "resolved_captures": result.resolved_count,
            "duration_ms": round(result.duration_ms, 3),
        },
        "captures": captures,
        "desired_state": desired_state,
    }


def _json_serializer(obj: Any) -> Any:
    """Custom JSON serializer for non-standard types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    return str(obj)
