"""
Capture resolution for nmpolicy.

Key concepts:
    - evaluate: Walk a state document along a parsed capture expression
    - resolve: Reuse a cached capture or resolve it fresh, stamping new
      results with the generation timestamp
"""

from nmpolicy.resolver.cache import Resolution, resolve
from nmpolicy.resolver.evaluator import evaluate

__all__ = [
    "Resolution",
    "evaluate",
    "resolve",
]
