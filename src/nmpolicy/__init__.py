"""
nmpolicy - Resolve declarative network-state policies into desired state.

A policy names captures (query expressions over the host's current state)
and a desired-state template that may reference them. nmpolicy evaluates
the captures, reuses cached resolutions across invocations, and returns:
- Desired state, with capture references substituted
- A cache of resolved captures, to pass to the next invocation
- Meta info (generator version and generation timestamp)

Example usage:
    $ nmpolicy gen policy.yaml --state current.yaml --cache cache.yaml
    $ nmpolicy eval 'routes.running.destination=="0.0.0.0/0"' --state current.yaml
"""

__version__ = "0.1.0"
__author__ = "nmpolicy Contributors"

from nmpolicy.engine import GenerationResult, StateGenerator, generate_state
from nmpolicy.schema import (
    CachedState,
    CaptureState,
    GeneratedState,
    MetaInfo,
    PolicySpec,
)

__all__ = [
    "__version__",
    "__author__",
    "CachedState",
    "CaptureState",
    "GeneratedState",
    "GenerationResult",
    "MetaInfo",
    "PolicySpec",
    "StateGenerator",
    "generate_state",
]
