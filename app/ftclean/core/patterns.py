"""Pattern matching for entity selection.

Patterns come in three shapes: exact strings, glob wildcards (``*``, ``?``,
``[...]``) and slash-delimited regular expressions (``/^SH\\d+$/``). This
module scores candidates against patterns, translates patterns into query
predicates, and proposes alternatives when a pattern matches nothing.

Wildcards are matched with :mod:`fnmatch` semantics, case-insensitively.
"""

import fnmatch
import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from ftclean.core.filters import quote
from ftclean.models.selection import MatchResult, PatternType

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RESULTS = 100
SUGGESTION_LIMIT = 10
REGEX_SCORE = 0.9
FUZZY_SUGGESTION_THRESHOLD = 0.7
CONTAINMENT_SCORE = 0.8
# Above this many matches a pattern is considered too broad
BROAD_MATCH_COUNT = 50

_CHARACTER_CLASS = re.compile(r"\[[^\]]+\]")


@dataclass(frozen=True, slots=True)
class PatternAnalysis:
    """How effective a pattern is against a candidate set.

    Attributes:
        match_count: Number of matching candidates.
        examples: Up to five best matches.
        suggestions: Alternative patterns (empty unless the pattern matched
            nothing or was too broad).
    """

    match_count: int
    examples: tuple[str, ...]
    suggestions: tuple[str, ...]


def detect_pattern_type(pattern: str) -> PatternType:
    """Classify a pattern by shape.

    Args:
        pattern: Raw pattern text.

    Returns:
        REGEX for ``/.../``, WILDCARD if it contains ``*``, ``?`` or ``[``,
        EXACT otherwise.
    """
    if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
        return PatternType.REGEX
    if any(ch in pattern for ch in "*?["):
        return PatternType.WILDCARD
    return PatternType.EXACT


def _compile_regex(pattern: str) -> re.Pattern[str] | None:
    """Compile a slash-delimited pattern, or return None if it is invalid."""
    try:
        return re.compile(pattern[1:-1], re.IGNORECASE)
    except re.error as e:
        logger.debug("Ignoring invalid regex %s: %s", pattern, e)
        return None


def is_valid_regex(pattern: str) -> bool:
    return detect_pattern_type(pattern) == PatternType.REGEX and _compile_regex(pattern) is not None


def _compile_wildcard(pattern: str) -> re.Pattern[str]:
    return re.compile(fnmatch.translate(pattern), re.IGNORECASE)


def _wildcard_score(pattern: str) -> float:
    """Score a wildcard match; fewer wildcards means a more specific match."""
    wildcard_count = pattern.count("*") + pattern.count("?")
    return max(0.1, 1.0 - 0.1 * wildcard_count)


def _matcher(pattern: str) -> Callable[[str], MatchResult | None]:
    """Build a function that scores one candidate against ``pattern``."""
    pattern_type = detect_pattern_type(pattern)

    if pattern_type == PatternType.EXACT:
        return lambda value: MatchResult(value, 1.0, PatternType.EXACT) if value == pattern else None

    if pattern_type == PatternType.WILDCARD:
        compiled = _compile_wildcard(pattern)
        score = _wildcard_score(pattern)
        return lambda value: (
            MatchResult(value, score, PatternType.WILDCARD) if compiled.match(value) else None
        )

    regex = _compile_regex(pattern)
    if regex is None:
        return lambda value: None
    return lambda value: (
        MatchResult(value, REGEX_SCORE, PatternType.REGEX) if regex.search(value) else None
    )


def resolve(
    patterns: Sequence[str],
    candidates: Iterable[str],
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[MatchResult]:
    """Match candidates against patterns and rank the results.

    Each candidate appears at most once, with the best score any pattern
    gave it. Results are ordered by score, highest first; ties keep
    candidate order.

    Args:
        patterns: Patterns of any shape.
        candidates: Candidate values.
        max_results: Maximum number of results to return.

    Returns:
        Ranked match results.

    Example:
        >>> [m.value for m in resolve(["SHOT*"], ["SHOT01", "SEQ01"])]
        ['SHOT01']
    """
    candidate_list = list(candidates)
    best: dict[str, MatchResult] = {}

    for pattern in patterns:
        match = _matcher(pattern)
        for candidate in candidate_list:
            result = match(candidate)
            if result is None:
                continue
            existing = best.get(candidate)
            if existing is None or result.score > existing.score:
                best[candidate] = result

    ranked = sorted(best.values(), key=lambda r: r.score, reverse=True)
    return ranked[:max_results]


def matches(pattern: str, value: str) -> bool:
    """Check whether a single value matches a pattern of any shape."""
    return _matcher(pattern)(value) is not None


def to_sql_like(pattern: str) -> str:
    """Translate a wildcard pattern into a ``like`` pattern.

    ``*`` becomes ``%``, ``?`` becomes ``_`` and a character class such as
    ``[abc]`` is widened to ``%`` (the query grammar has no classes).

    Args:
        pattern: Wildcard pattern.

    Returns:
        Pattern usable with the ``like`` operator.
    """
    like = pattern.replace("*", "%").replace("?", "_")
    return _CHARACTER_CLASS.sub("%", like)


def build_query_conditions(patterns: Sequence[str], field: str) -> list[str]:
    """Translate patterns into query conditions over ``field``.

    Regex patterns cannot be pushed down; they become ``like "%"`` and the
    rows must be filtered afterwards with :func:`filter_by_regex`.

    Args:
        patterns: Patterns of any shape.
        field: Attribute path to match (e.g., "asset.parent.name").

    Returns:
        One condition per pattern, to be joined with ``or``.
    """
    conditions: list[str] = []
    for pattern in patterns:
        pattern_type = detect_pattern_type(pattern)
        if pattern_type == PatternType.EXACT:
            conditions.append(f"{field} is {quote(pattern)}")
        elif pattern_type == PatternType.WILDCARD:
            conditions.append(f"{field} like {quote(to_sql_like(pattern))}")
        else:
            conditions.append(f'{field} like "%"')
    return conditions


def filter_by_regex(
    items: Iterable[T],
    patterns: Sequence[str],
    extractor: Callable[[T], str],
) -> list[T]:
    """Keep items whose extracted value matches any regex pattern.

    Non-regex patterns and invalid regexes are ignored. When no usable
    regex remains, every item is kept.

    Args:
        items: Items to filter.
        patterns: Patterns of any shape.
        extractor: Returns the string to test for an item.

    Returns:
        Filtered items, in input order.
    """
    regexes = [
        compiled
        for p in patterns
        if detect_pattern_type(p) == PatternType.REGEX
        and (compiled := _compile_regex(p)) is not None
    ]
    item_list = list(items)
    if not regexes:
        return item_list
    return [item for item in item_list if any(r.search(extractor(item)) for r in regexes)]


def levenshtein(a: str, b: str) -> int:
    """Compute the edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def fuzzy_match(pattern: str, candidate: str) -> float:
    """Score how similar two strings are, case-insensitively.

    Args:
        pattern: Text typed by the user.
        candidate: Known value.

    Returns:
        1.0 for equal strings, otherwise ``1 - distance / longest length``,
        raised to at least 0.8 when either string contains the other.
    """
    pattern_lower = pattern.lower()
    candidate_lower = candidate.lower()
    if pattern_lower == candidate_lower:
        return 1.0
    longest = max(len(pattern_lower), len(candidate_lower))
    score = max(0.0, 1.0 - levenshtein(pattern_lower, candidate_lower) / longest)
    if pattern_lower in candidate_lower or candidate_lower in pattern_lower:
        return max(CONTAINMENT_SCORE, score)
    return score


def suggest_patterns(
    text: str,
    candidates: Iterable[str],
    limit: int = SUGGESTION_LIMIT,
) -> list[str]:
    """Propose patterns for text that matched nothing useful.

    For every candidate containing one of the whitespace-separated words,
    the substring, prefix and suffix wildcards of that word are proposed.
    Candidates similar to the whole text are proposed verbatim.

    Args:
        text: User input.
        candidates: Known values.
        limit: Maximum number of suggestions.

    Returns:
        Unique suggestions, in discovery order.
    """
    suggestions: dict[str, None] = {}
    words = text.lower().split()

    for candidate in candidates:
        candidate_lower = candidate.lower()
        for word in words:
            if word in candidate_lower:
                suggestions.setdefault(f"*{word}*", None)
                suggestions.setdefault(f"{word}*", None)
                suggestions.setdefault(f"*{word}", None)
        if fuzzy_match(text, candidate) > FUZZY_SUGGESTION_THRESHOLD:
            suggestions.setdefault(candidate, None)

    return list(suggestions)[:limit]


def analyze_pattern(pattern: str, candidates: Sequence[str]) -> PatternAnalysis:
    """Summarize how a single pattern performs against candidates.

    Args:
        pattern: Pattern of any shape.
        candidates: Known values.

    Returns:
        PatternAnalysis with counts, examples and suggestions.
    """
    results = resolve([pattern], candidates)
    suggestions: list[str] = []
    if not results:
        suggestions = suggest_patterns(pattern, candidates)
    elif len(results) > BROAD_MATCH_COUNT:
        suggestions = [f"{pattern}*", f"*{pattern}*"]

    return PatternAnalysis(
        match_count=len(results),
        examples=tuple(r.value for r in results[:5]),
        suggestions=tuple(suggestions),
    )
