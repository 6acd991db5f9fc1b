"""
State generator for nmpolicy.

The generator is the orchestration layer that turns a policy into a
generated state. It coordinates between:
- Cache manager: Reuses cached captures or resolves them fresh
- Expression parser and path evaluator: Used on every cache miss
- Template substitution: Embeds resolved captures in the desired state

Generation Flow:
    1. Read the clock once; this generation stamp is shared by the
       top-level MetaInfo and every freshly resolved capture
    2. Resolve each capture (sorted by name, optionally on a thread pool)
    3. Stop at the first failure; nothing partial is returned
    4. Copy the desired state, substituting capture references if any
    5. Return desired state, refreshed cache and MetaInfo

The generator holds no state between calls. Inputs are never modified.
"""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime

from nmpolicy.config import Settings
from nmpolicy.resolver import Resolution, resolve
from nmpolicy.schema import (
    GENERATION_VERSION,
    CachedState,
    GeneratedState,
    MetaInfo,
    PolicySpec,
)
from nmpolicy.template import substitute
from nmpolicy.tree import LazyDocument

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class CaptureOutcome:
    """
    How a single capture was resolved.

    Attributes:
        name: Capture name
        expression: Capture expression text
        used_cache: Whether the state came from the prior cache
        timestamp: Timestamp recorded in the capture's MetaInfo
        duration_ms: Time spent resolving the capture
    """

    name: str
    expression: str
    used_cache: bool
    timestamp: datetime | None = None
    duration_ms: float = 0.0


@dataclass
class GenerationResult:
    """
    Result of one generation.

    Attributes:
        state: The generated state
        captures: Per-capture outcomes, sorted by name
        duration_ms: Total generation time in milliseconds
    """

    state: GeneratedState
    captures: list[CaptureOutcome] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def cached_count(self) -> int:
        """Number of captures taken from the prior cache."""
        return sum(1 for c in self.captures if c.used_cache)

    @property
    def resolved_count(self) -> int:
        """Number of captures resolved in this generation."""
        return sum(1 for c in self.captures if not c.used_cache)


class StateGenerator:
    """
    Generates desired state from a policy.

    Usage:
        generator = StateGenerator()
        result = generator.generate(policy, current_state, cache)
        next_cache = result.state.cache

    Attributes:
        max_workers: Threads used to resolve captures (1 = sequential)
        sort_keys: Sort mapping keys in generated YAML
        clock: Returns the current time; read once per generation
    """

    def __init__(
        self,
        max_workers: int = 1,
        sort_keys: bool = True,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the generator.

        Args:
            max_workers: Threads used to resolve captures (1 = sequential)
            sort_keys: Sort mapping keys in generated YAML
            clock: Time source (defaults to the UTC wall clock)
        """
        if max_workers < 1:
            msg = f"max_workers must be at least 1, got {max_workers}"
            raise ValueError(msg)
        self.max_workers = max_workers
        self.sort_keys = sort_keys
        self.clock = clock or _utc_now

    @classmethod
    def from_settings(cls, settings: Settings) -> "StateGenerator":
        """Create a generator configured from Settings."""
        return cls(max_workers=settings.max_workers, sort_keys=settings.yaml_sort_keys)

    def generate(
        self,
        spec: PolicySpec,
        current_state: bytes | str | None = None,
        cache: CachedState | None = None,
    ) -> GenerationResult:
        """
        Generate state for a policy.

        Args:
            spec: The policy
            current_state: Current state document as YAML bytes
            cache: Captures resolved by an earlier generation

        Returns:
            GenerationResult with the generated state and per-capture outcomes

        Raises:
            NMPolicyError: The first error hit while resolving captures or
                substituting the desired state
        """
        start = time.perf_counter()
        generation_stamp = self.clock()
        prior_cache = cache or CachedState()
        if isinstance(current_state, str):
            current_state = current_state.encode("utf-8")
        document = LazyDocument(current_state)

        names = sorted(spec.capture)
        logger.debug("Generating state for %d captures", len(names))

        outcomes: list[CaptureOutcome] = []
        resolved = {}
        for resolution, duration_ms in self._resolve_all(
            spec, names, document, prior_cache, generation_stamp
        ):
            resolved[resolution.name] = resolution.capture_state
            outcomes.append(
                CaptureOutcome(
                    name=resolution.name,
                    expression=spec.capture[resolution.name],
                    used_cache=resolution.used_cache,
                    timestamp=resolution.capture_state.meta_info.timestamp,
                    duration_ms=duration_ms,
                )
            )

        desired_state = substitute(spec.desired_state, resolved, sort_keys=self.sort_keys)

        state = GeneratedState(
            desired_state=desired_state,
            cache=CachedState(capture=resolved),
            meta_info=MetaInfo(version=GENERATION_VERSION, timestamp=generation_stamp),
        )
        result = GenerationResult(
            state=state,
            captures=outcomes,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        logger.info(
            "Generated state: %d captures (%d cached, %d resolved)",
            len(outcomes),
            result.cached_count,
            result.resolved_count,
        )
        return result

    def _resolve_all(
        self,
        spec: PolicySpec,
        names: list[str],
        document: LazyDocument,
        prior_cache: CachedState,
        generation_stamp: datetime,
    ) -> list[tuple[Resolution, float]]:
        """Resolve every capture; raise the first failure in name order."""

        def task(name: str) -> tuple[Resolution, float]:
            started = time.perf_counter()
            resolution = resolve(
                name,
                spec.capture[name],
                document,
                prior_cache,
                generation_stamp,
                sort_keys=self.sort_keys,
            )
            return resolution, (time.perf_counter() - started) * 1000

        if self.max_workers == 1 or len(names) < 2:
            results = []
            for name in names:
                try:
                    results.append(task(name))
                except Exception:
                    logger.debug("Capture %s failed", name)
                    raise
            return results

        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = [executor.submit(task, name) for name in names]
            results = []
            for name, future in zip(names, futures):
                try:
                    results.append(future.result())
                except Exception:
                    logger.debug("Capture %s failed", name)
                    raise
            return results
        finally:
            executor.shutdown(wait=True, cancel_futures=True)


def generate_state(
    spec: PolicySpec,
    current_state: bytes | str | None = None,
    cache: CachedState | None = None,
) -> GeneratedState:
    """
    Generate state for a policy.

    Given a policy spec, the host's current state and a cache of already
    resolved captures, returns:
    - Desired state: The template, with capture references substituted
    - Cache: Every capture of the policy, reusable as the next call's cache
    - Meta info: Generator version and generation timestamp

    Raises:
        NMPolicyError: On the first failure; no partial state is returned
    """
    return StateGenerator().generate(spec, current_state, cache).state
