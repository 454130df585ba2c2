"""Case-insensitive fuzzy matching for the ``/`` list query."""

from __future__ import annotations


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Score an in-order subsequence match, or ``None`` when it does not match.

    Consecutive runs and matches at word boundaries score higher; long
    candidates are slightly penalised.
    """
    if not query:
        return 0
    query_folded = query.casefold()
    candidate_folded = candidate.casefold()

    score = 0
    prev_idx = -1
    run = 0
    for needle in query_folded:
        idx = candidate_folded.find(needle, prev_idx + 1)
        if idx < 0:
            return None
        if idx == prev_idx + 1:
            run += 1
            score += 20 + min(16, run * 4)
        else:
            gap = idx - prev_idx - 1
            run = 0
            score -= min(40, gap * 2)
        if idx == 0 or candidate_folded[idx - 1] in "/_- .#@":
            score += 35
        prev_idx = idx

    score -= len(candidate_folded) // 5
    return score


def substring_index(query: str, candidate: str) -> int | None:
    if not query:
        return 0
    idx = candidate.casefold().find(query.casefold())
    if idx < 0:
        return None
    return idx


def query_matches(query: str, candidate: str) -> bool:
    """Return whether ``candidate`` matches ``query`` as substring or fuzzily.

    Whitespace-separated query terms must all match.
    """
    for term in query.split():
        if substring_index(term, candidate) is None and fuzzy_score(term, candidate) is None:
            return False
    return True
