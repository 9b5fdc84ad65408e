"""
Approximate token cost of response payloads.
"""

import json
import math
from enum import IntEnum
from typing import Any

# Characters of serialized text per estimated token.
CHARS_PER_TOKEN = 4


class TokenBudget(IntEnum):
    """Named response budgets, in estimated tokens."""
    DEFAULT = 4000
    HARD = 5000
    SUMMARY = 500


class TokenEstimator:
    """Size heuristic: serialized length divided by ``CHARS_PER_TOKEN``, rounded up.

    This is a budgeting metric, not a tokenizer. Strings are measured as-is;
    anything else is measured as compact JSON.
    """

    def __init__(self, chars_per_token: int = CHARS_PER_TOKEN):
        self.chars_per_token = chars_per_token

    def serialize(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)

    def estimate(self, value: Any) -> int:
        return math.ceil(len(self.serialize(value)) / self.chars_per_token)

    def will_exceed(self, value: Any, limit: int = TokenBudget.DEFAULT) -> bool:
        return self.estimate(value) > int(limit)
