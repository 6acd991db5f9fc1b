"""
Schema definitions for nmpolicy.

This module defines the Pydantic models passed in and out of the engine:
- PolicySpec: Desired-state template plus named capture expressions
- CachedState/CaptureState: Previously resolved captures
- GeneratedState: Output of one generation
- MetaInfo: Version and timestamp attached to generated data

Design Decisions:
    - Models are immutable (frozen=True); the engine returns new values
    - Documents travel as raw bytes; the engine decodes them when needed
    - Field aliases follow the camelCase keys used in policy files
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Version stamped on everything the engine generates
GENERATION_VERSION = "0"


# =============================================================================
# Models
# =============================================================================


class MetaInfo(BaseModel):
    """
    Extended information about generated data.

    Attributes:
        version: Version of the generator that produced the data
        timestamp: When the data was generated (None if never generated)
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    version: str = Field(
        default=GENERATION_VERSION,
        description="Generator version",
    )
    timestamp: datetime | None = Field(
        default=None,
        alias="time",
        description="When the data was generated",
    )


class CaptureState(BaseModel):
    """
    A resolved capture.

    Attributes:
        state: The resolved document as YAML bytes
        meta_info: Version and timestamp of the resolution
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    state: bytes = Field(
        default=b"",
        description="Resolved document as YAML bytes",
    )
    meta_info: MetaInfo = Field(
        default_factory=MetaInfo,
        alias="metaInfo",
        description="Version and timestamp of the resolution",
    )


class CachedState(BaseModel):
    """
    Named captures resolved by earlier generations.

    Attributes:
        capture: Capture name to resolved state
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    capture: dict[str, CaptureState] = Field(
        default_factory=dict,
        description="Capture name to resolved state",
    )


class PolicySpec(BaseModel):
    """
    A network-state policy.

    Attributes:
        desired_state: Desired-state template, possibly holding capture references
        capture: Capture name to capture expression
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    desired_state: bytes | None = Field(
        default=None,
        alias="desiredState",
        description="Desired-state template bytes",
    )
    capture: dict[str, str] = Field(
        default_factory=dict,
        description="Capture name to capture expression",
    )

    @field_validator("capture")
    @classmethod
    def validate_capture_names(cls, v: dict[str, str]) -> dict[str, str]:
        """Capture names must be non-empty and free of dots."""
        for name in v:
            if not name or "." in name or name != name.strip():
                msg = f"Invalid capture name: {name!r}"
                raise ValueError(msg)
        return v


class GeneratedState(BaseModel):
    """
    The output of one generation.

    Attributes:
        desired_state: Desired state with capture references substituted
        cache: Resolved captures, suitable as input to the next generation
        meta_info: Version and generation timestamp
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    desired_state: bytes | None = Field(
        default=None,
        alias="desiredState",
        description="Desired state bytes",
    )
    cache: CachedState = Field(
        default_factory=CachedState,
        description="Resolved captures",
    )
    meta_info: MetaInfo = Field(
        default_factory=MetaInfo,
        alias="metaInfo",
        description="Version and generation timestamp",
    )


# =============================================================================
# YAML Loading Helpers
# =============================================================================


def load_policy(path: Path | str) -> PolicySpec:
    """
    Load a policy from a YAML file.

    The file holds a 'capture' mapping and a 'desiredState' document.
    A desiredState given as a plain string is taken as raw template text.

    Args:
        path: Path to the YAML file

    Returns:
        Validated PolicySpec

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the YAML doesn't match the schema
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return PolicySpec.model_validate(_policy_data(data))


def load_policy_from_string(content: str) -> PolicySpec:
    """Load a policy from a YAML string."""
    data = yaml.safe_load(content)
    return PolicySpec.model_validate(_policy_data(data))


def load_cached_state(path: Path | str) -> CachedState:
    """
    Load a cache from a YAML file.

    Accepts both a bare cache ('capture' at the top level) and a full
    generated state, in which case its 'cache' section is used.

    Args:
        path: Path to the YAML file

    Returns:
        Validated CachedState

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the YAML doesn't match the schema
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    return CachedState.model_validate(_cache_data(data))


def load_cached_state_from_string(content: str) -> CachedState:
    """Load a cache from a YAML string."""
    data = yaml.safe_load(content)
    return CachedState.model_validate(_cache_data(data))


def dump_cached_state(cache: CachedState) -> str:
    """Serialize a cache as YAML, with captured states as nested documents."""
    return yaml.safe_dump(
        _cache_dict(cache), default_flow_style=False, sort_keys=True, allow_unicode=True
    )


def dump_generated_state(state: GeneratedState) -> str:
    """Serialize a generated state as YAML."""
    data = {
        "desiredState": _document_value(state.desired_state),
        "cache": _cache_dict(state.cache),
        "metaInfo": state.meta_info.model_dump(mode="json", by_alias=True),
    }
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True)


def _policy_data(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = "Policy must be a mapping"
        raise ValueError(msg)
    data = dict(data)
    if "desiredState" in data:
        data["desiredState"] = _document_bytes(data["desiredState"])
    return data


def _cache_data(data: Any) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = "Cache must be a mapping"
        raise ValueError(msg)
    if "cache" in data:
        data = data["cache"] or {}
    captures = {}
    for name, entry in (data.get("capture") or {}).items():
        entry = dict(entry or {})
        if "state" in entry:
            entry["state"] = _document_bytes(entry["state"])
        captures[name] = entry
    return {"capture": captures}


def _cache_dict(cache: CachedState) -> dict[str, Any]:
    return {
        "capture": {
            name: {
                "state": _document_value(capture.state),
                "metaInfo": capture.meta_info.model_dump(mode="json", by_alias=True),
            }
            for name, capture in cache.capture.items()
        }
    }


def _dump_bytes(value: Any) -> bytes:
    return yaml.safe_dump(
        value, default_flow_style=False, sort_keys=True, allow_unicode=True
    ).encode("utf-8")


def _document_bytes(value: Any) -> bytes | None:
    """Turn a document read from a file back into raw bytes."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return _dump_bytes(value)


def _document_value(data: bytes | None) -> Any:
    """
    Embed raw document bytes in a file, structured when they decode.

    A document is only nested as structure when _document_bytes would
    rebuild exactly the same bytes from it; otherwise it is kept as text.
    """
    if data is None:
        return None
    text = data.decode("utf-8", errors="replace")
    try:
        value = yaml.safe_load(text)
    except yaml.YAMLError:
        return text
    if isinstance(value, (dict, list)) and _dump_bytes(value) == data:
        return value
    return text
