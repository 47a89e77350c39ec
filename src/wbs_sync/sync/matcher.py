"""Name-based task matching: exact display name first, then Levenshtein similarity."""

from __future__ import annotations

import logging
from collections.abc import Mapping

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 0.5


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character insertions, deletions and substitutions."""
    len1, len2 = len(a), len(b)
    matrix = [[0] * (len2 + 1) for _ in range(len1 + 1)]
    for i in range(len1 + 1):
        matrix[i][0] = i
    for j in range(len2 + 1):
        matrix[0][j] = j

    for i in range(1, len1 + 1):
        for j in range(1, len2 + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )
    return matrix[len1][len2]


def similarity(a: str, b: str) -> float:
    """Case-insensitive normalized similarity in [0, 1]."""
    a, b = a.lower(), b.lower()
    if a == b:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max(len(a), len(b))


class TaskMatcher:
    """Resolves a source task name to a remote task id against a fixed index snapshot."""

    def __init__(self, index: Mapping[str, str], *, threshold: float = FUZZY_THRESHOLD) -> None:
        self._index = index
        self.threshold = threshold

    def match(self, name: str) -> str | None:
        name = name.strip()

        for task_id, remote_name in self._index.items():
            if remote_name == name:
                return task_id

        best_id: str | None = None
        best_score = 0.0
        for task_id, remote_name in self._index.items():
            score = similarity(name, remote_name)
            # Strict ">" keeps the first-seen candidate on ties.
            if score > best_score:
                best_id, best_score = task_id, score

        if best_id is not None and best_score > self.threshold:
            logger.debug("fuzzy match %r -> %r (%.2f)", name, self._index[best_id], best_score)
            return best_id
        return None


def match_task(name: str, index: Mapping[str, str], *, threshold: float = FUZZY_THRESHOLD) -> str | None:
    return TaskMatcher(index, threshold=threshold).match(name)
