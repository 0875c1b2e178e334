"""
registry.py
===========
Decide which MongoDB collections the dynamic quiz routes may read.

Quiz collections follow a naming convention (``quiz-<slug>``).  Anything
else, in particular the service's own ``users`` collection, is never reachable
through ``/api/quizzes/{name}`` or the ``/api/{name}`` fallback.
"""

from __future__ import annotations

import re
from typing import FrozenSet

USERS_COLLECTION     = "users"
QUESTIONS_COLLECTION = "questions"
QUIZZES_COLLECTION   = "quizzes"

RESERVED_COLLECTIONS: FrozenSet[str] = frozenset(
    {USERS_COLLECTION, QUESTIONS_COLLECTION, QUIZZES_COLLECTION}
)

_SLUG = r"[A-Za-z0-9][A-Za-z0-9_-]{0,99}"


class CollectionRegistry:
    """Allow-list of quiz collection names, keyed on a fixed prefix."""

    def __init__(self, prefix: str = "quiz-"):
        if not prefix:
            raise ValueError("quiz collection prefix must not be empty")
        self.prefix = prefix
        self._pattern = re.compile(re.escape(prefix) + _SLUG)

    def is_allowed(self, name: str) -> bool:
        if name in RESERVED_COLLECTIONS:
            return False
        return self._pattern.fullmatch(name) is not None
