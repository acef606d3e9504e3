"""Random reviewer selection (core domain).

Selection is rejection sampling without replacement: an index is drawn
uniformly over the full candidate list on every attempt and duplicates are
discarded until enough distinct reviewers are picked.

Termination: the target is min(max_count, len(candidates)), so it never
exceeds the number of distinct candidates. While fewer than `target` names are
picked, at least one unpicked candidate remains and each draw hits it with
probability >= 1 / len(candidates) > 0.
"""

from __future__ import annotations

import random
from typing import Optional

from core.models import NameMapping, ReviewerSelection


def candidate_pool(mapping: NameMapping, author: str) -> list[str]:
    """Return the source names eligible to review.

    The author is excluded, together with any other source name mapped to the
    author's chat name. Source names sharing a chat name collapse to the first
    one, so every candidate reaches a different chat user.
    """

    author_chat_name = mapping.names.get(author)
    seen_chat_names: set[str] = set()
    candidates: list[str] = []
    for source_name, chat_name in mapping.names.items():
        if source_name == author or chat_name == author_chat_name:
            continue
        if chat_name in seen_chat_names:
            continue
        seen_chat_names.add(chat_name)
        candidates.append(source_name)
    return candidates


def select_reviewers(
    mapping: NameMapping,
    author: str,
    max_count: int,
    rng: Optional[random.Random] = None,
) -> ReviewerSelection:
    """Pick up to `max_count` distinct reviewers who are not `author`.

    Pass a seeded `random.Random` for reproducible picks.
    """

    if max_count < 0:
        raise ValueError(f"max_count must be >= 0, got {max_count}")

    rng = rng or random.Random()
    candidates = candidate_pool(mapping, author)
    target = min(max_count, len(candidates))

    picked: list[str] = []
    while len(picked) < target:
        source_name = candidates[rng.randrange(len(candidates))]
        if source_name not in picked:
            picked.append(source_name)

    return ReviewerSelection(
        reviewers=tuple(mapping.chat_name(name) for name in picked),
        candidates=tuple(candidates),
    )
