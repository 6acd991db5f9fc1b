"""
Cache manager for captures.

Decides, per named capture, whether to reuse a cached resolution or to
resolve the expression against the current state.

Cached entries are addressed purely by capture name. A cached entry is
returned exactly as stored, including its MetaInfo, whatever the current
state or expression text now say. Only cache misses are parsed and
evaluated, so a stale cache can never make a generation fail.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from nmpolicy.expression import parse
from nmpolicy.resolver.evaluator import evaluate
from nmpolicy.schema import GENERATION_VERSION, CachedState, CaptureState, MetaInfo
from nmpolicy.tree import LazyDocument, dump_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """
    Outcome of resolving one capture.

    Attributes:
        name: Capture name
        capture_state: The cached or freshly resolved state
        used_cache: True when the state came from the prior cache
    """

    name: str
    capture_state: CaptureState
    used_cache: bool


def resolve(
    name: str,
    expression: str,
    current_state: LazyDocument,
    prior_cache: CachedState,
    generation_stamp: datetime,
    sort_keys: bool = True,
) -> Resolution:
    """
    Resolve one named capture.

    Args:
        name: Capture name
        expression: Capture expression text
        current_state: Current state document, decoded on first miss
        prior_cache: Captures resolved by an earlier generation
        generation_stamp: Timestamp given to freshly resolved captures
        sort_keys: Sort mapping keys when serializing the result

    Returns:
        Resolution holding the capture state and whether the cache was used

    Raises:
        ParseError: If the expression is malformed
        PathNotFoundError: If the expression names a missing key
        TypeMismatchError: If the document shape does not fit the expression
        DocumentError: If the current state cannot be decoded
    """
    cached = prior_cache.capture.get(name)
    if cached is not None:
        logger.debug("Capture %s: using cached state from %s", name, cached.meta_info.timestamp)
        return Resolution(name=name, capture_state=cached, used_cache=True)

    logger.debug("Capture %s: resolving %s", name, expression)
    parsed = parse(expression)
    result = evaluate(parsed, current_state.root)

    capture_state = CaptureState(
        state=dump_document(result, sort_keys=sort_keys),
        meta_info=MetaInfo(version=GENERATION_VERSION, timestamp=generation_stamp),
    )
    return Resolution(name=name, capture_state=capture_state, used_cache=False)
