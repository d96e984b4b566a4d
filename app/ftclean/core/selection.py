"""Entity selection.

:class:`SelectionResolver` turns direct ids, name patterns, filter
criteria, or list membership into uniform :class:`SelectionCandidate` rows.
:class:`SelectionPager` lets a caller page through, narrow, and pick from
those rows without ever discarding the original set.
"""

import logging
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import replace

from ftclean.core.filters import build_where, in_list
from ftclean.core.patterns import (
    build_query_conditions,
    detect_pattern_type,
    filter_by_regex,
    is_valid_regex,
    matches,
    suggest_patterns,
)
from ftclean.core.scope import ProjectScope
from ftclean.models.entity import lookup
from ftclean.models.filters import FilterCriteria
from ftclean.models.selection import PatternType, SelectionCandidate, SelectionResult
from ftclean.remote.base import EntityReader
from ftclean.remote.lists import EntityList, ListResolver

logger = logging.getLogger(__name__)

CANDIDATE_FIELDS = "id, version, asset.name, asset.parent.name, status.name, user.username, date"
# Ids are fetched in chunks to keep query text bounded
ID_CHUNK_SIZE = 100
# Parent names sampled when building suggestions
SUGGESTION_SAMPLE_SIZE = 500

_ID_PATTERN = re.compile(r"^[0-9a-f-]{36}$", re.IGNORECASE)
_ID_SEPARATORS = re.compile(r"[\s,]+")


class InvalidSelectionError(ValueError):
    """Raised when selection input is malformed; nothing is queried."""


class SelectionResolver:
    """Resolves user input into selection candidates.

    Example:
        >>> resolver = SelectionResolver(reader, ProjectScope.global_scope())
        >>> result = resolver.search(["SH01*", "/^SH0[2-4]$/"])
        >>> [item.label for item in result.items]
    """

    def __init__(
        self,
        reader: EntityReader,
        scope: ProjectScope,
        lists: ListResolver | None = None,
        *,
        entity_type: str = "AssetVersion",
        search_field: str = "asset.parent.name",
    ) -> None:
        """Initialize the resolver.

        Args:
            reader: Query capability.
            scope: Project scope applied to every query.
            lists: List collaborator. Defaults to a ListResolver on the same reader.
            entity_type: Entity type to select.
            search_field: Attribute path patterns are matched against.
        """
        self._reader = reader
        self._scope = scope
        self._lists = lists or ListResolver(reader, scope, entity_type)
        self._entity_type = entity_type
        self._search_field = search_field

    # =========================================================================
    # Direct ids
    # =========================================================================

    @staticmethod
    def parse_ids(raw: str | Iterable[str]) -> list[str]:
        """Split and validate id input.

        Args:
            raw: Comma/whitespace separated ids, or an iterable of such strings.

        Returns:
            Unique ids, in input order.

        Raises:
            InvalidSelectionError: If no id is given or any token is not
                UUID-shaped.
        """
        chunks = [raw] if isinstance(raw, str) else list(raw)
        tokens = [t for chunk in chunks for t in _ID_SEPARATORS.split(chunk) if t]
        if not tokens:
            msg = "No ids given"
            raise InvalidSelectionError(msg)

        invalid = [t for t in tokens if not _ID_PATTERN.match(t)]
        if invalid:
            msg = f"Invalid id(s): {', '.join(invalid)}"
            raise InvalidSelectionError(msg)
        return list(dict.fromkeys(tokens))

    def select_by_ids(self, ids: Sequence[str]) -> SelectionResult:
        """Fetch candidates for explicit ids.

        Ids that do not exist (or are outside the scope) are reported in
        ``missing_ids`` and logged; they are not an error.

        Args:
            ids: Validated ids (see :meth:`parse_ids`).

        Returns:
            SelectionResult with candidates in requested order.
        """
        rows = self._fetch_by_ids(ids)
        by_id = {lookup(row, "id"): row for row in rows}
        items = tuple(SelectionCandidate.from_row(by_id[i]) for i in ids if i in by_id)
        missing = tuple(i for i in ids if i not in by_id)
        if missing:
            logger.warning("%d id(s) not found: %s", len(missing), ", ".join(missing))
        return SelectionResult(items=items, missing_ids=missing)

    def _fetch_by_ids(self, ids: Sequence[str]) -> list[dict]:
        rows: list[dict] = []
        for start in range(0, len(ids), ID_CHUNK_SIZE):
            chunk = ids[start : start + ID_CHUNK_SIZE]
            rows.extend(self._query(in_list("id", chunk)))
        return rows

    # =========================================================================
    # Pattern search
    # =========================================================================

    def search(self, patterns: Sequence[str]) -> SelectionResult:
        """Find candidates whose search field matches any pattern.

        Exact and wildcard patterns are pushed into the query. Regex
        patterns cannot be, so when one is present the rows are filtered
        locally: a row stays if a regex matches it or if one of the pushed
        patterns matches it on its own.

        Args:
            patterns: Patterns of any shape.

        Returns:
            SelectionResult with ``search_used`` set. An empty match is
            not a cancellation.

        Raises:
            InvalidSelectionError: If no non-blank pattern is given.
        """
        cleaned = [p.strip() for p in patterns if p.strip()]
        if not cleaned:
            msg = "No search pattern given"
            raise InvalidSelectionError(msg)

        conditions = build_query_conditions(cleaned, self._search_field)
        rows = self._query(f"({' or '.join(conditions)})")

        if any(detect_pattern_type(p) == PatternType.REGEX for p in cleaned):
            before = len(rows)
            plain = [p for p in cleaned if detect_pattern_type(p) != PatternType.REGEX]
            usable = [p for p in cleaned if is_valid_regex(p)]
            # filter_by_regex keeps everything when given no usable regex
            regex_hits = (
                {id(row) for row in filter_by_regex(rows, usable, self._field_value)}
                if usable
                else set()
            )
            rows = [
                row
                for row in rows
                if id(row) in regex_hits
                or any(matches(p, self._field_value(row)) for p in plain)
            ]
            logger.debug("Regex post-filter kept %d of %d row(s)", len(rows), before)

        return SelectionResult(
            items=tuple(SelectionCandidate.from_row(row) for row in rows),
            search_used=True,
            patterns=tuple(cleaned),
        )

    def _field_value(self, row: dict) -> str:
        return lookup(row, self._search_field)

    def suggest(self, patterns: Sequence[str], limit: int = 5) -> list[str]:
        """Suggest alternative patterns from a sample of known values.

        Args:
            patterns: Patterns that matched nothing.
            limit: Maximum number of suggestions.

        Returns:
            Suggested patterns.
        """
        rows = self._reader.query(
            self._scope.scoped(
                f"select {self._search_field} from {self._entity_type} limit {SUGGESTION_SAMPLE_SIZE}"
            )
        )
        values = list(dict.fromkeys(v for row in rows if (v := lookup(row, self._search_field))))

        suggestions: dict[str, None] = {}
        for pattern in patterns:
            text = pattern.strip("/").replace("*", " ").replace("?", " ")
            for suggestion in suggest_patterns(text, values):
                suggestions.setdefault(suggestion, None)
        return list(suggestions)[:limit]

    # =========================================================================
    # Filters and lists
    # =========================================================================

    def select_by_filter(self, criteria: FilterCriteria) -> SelectionResult:
        """Find candidates matching structured filter criteria.

        Args:
            criteria: Validated filter criteria.

        Returns:
            SelectionResult with matching candidates.

        Raises:
            InvalidSelectionError: If the criteria compile to no predicate.
        """
        predicate = build_where(criteria)
        if not predicate:
            msg = "Filter criteria produce no condition"
            raise InvalidSelectionError(msg)
        rows = self._query(predicate)
        return SelectionResult(items=tuple(SelectionCandidate.from_row(row) for row in rows))

    def fetch_lists(self) -> list[EntityList]:
        """Fetch the lists available in the current scope."""
        return self._lists.fetch_lists()

    def select_from_list(self, name_or_id: str) -> SelectionResult:
        """Select the members of a list.

        Args:
            name_or_id: List name or id.

        Returns:
            SelectionResult with the list's members. A list without members
            yields an empty, non-cancelled result.

        Raises:
            InvalidSelectionError: If the list does not exist.
        """
        entity_list = self._lists.find_list(name_or_id)
        if entity_list is None:
            msg = f"List not found: {name_or_id}"
            raise InvalidSelectionError(msg)

        member_ids = self._lists.member_ids(entity_list.id)
        logger.info("List '%s' has %d member(s)", entity_list.name, len(member_ids))
        if not member_ids:
            return SelectionResult()

        rows = self._fetch_by_ids(member_ids)
        by_id = {lookup(row, "id"): row for row in rows}
        return SelectionResult(
            items=tuple(SelectionCandidate.from_row(by_id[i]) for i in member_ids if i in by_id)
        )

    def _query(self, predicate: str) -> list[dict]:
        query = self._scope.scoped(
            f"select {CANDIDATE_FIELDS} from {self._entity_type} where {predicate} "
            "order by asset.parent.name, asset.name, version"
        )
        return self._reader.query(query)


class SelectionPager:
    """Pages through candidates and tracks which ones are picked.

    Filtering narrows the visible set by case-insensitive substring over
    label and description, always starting from the original candidates.
    Selected ids survive filter changes.
    """

    def __init__(self, source: SelectionResult, page_size: int = 20) -> None:
        """Initialize the pager.

        Args:
            source: Result whose items are offered.
            page_size: Candidates per page.

        Raises:
            ValueError: If page_size is not positive.
        """
        if page_size < 1:
            msg = f"Page size must be positive, got {page_size}"
            raise ValueError(msg)
        self._source = source
        self._page_size = page_size
        self._filter = ""
        self._page = 0
        self._selected: dict[str, None] = {}

    @property
    def filter_text(self) -> str:
        return self._filter

    @property
    def visible(self) -> list[SelectionCandidate]:
        """Candidates passing the current filter, in original order."""
        if not self._filter:
            return list(self._source.items)
        needle = self._filter.lower()
        return [
            item
            for item in self._source.items
            if needle in item.label.lower() or needle in item.description.lower()
        ]

    @property
    def page(self) -> int:
        """Current page index (0-based)."""
        return self._page

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(len(self.visible) / self._page_size))

    def current_page(self) -> list[SelectionCandidate]:
        """Candidates on the current page."""
        start = self._page * self._page_size
        return self.visible[start : start + self._page_size]

    def go_to(self, page: int) -> None:
        """Jump to a page, clamped to the valid range."""
        self._page = min(max(page, 0), self.page_count - 1)

    def next_page(self) -> bool:
        """Advance one page. Returns False on the last page."""
        if self._page + 1 >= self.page_count:
            return False
        self._page += 1
        return True

    def prev_page(self) -> bool:
        """Go back one page. Returns False on the first page."""
        if self._page == 0:
            return False
        self._page -= 1
        return True

    def apply_filter(self, text: str) -> None:
        """Narrow the visible candidates and return to the first page."""
        self._filter = text.strip()
        self._page = 0

    def clear_filter(self) -> None:
        """Show all original candidates again."""
        self.apply_filter("")

    def select(self, ids: Iterable[str]) -> None:
        """Pick candidates by id; unknown ids are ignored."""
        known = {item.id for item in self._source.items}
        for entity_id in ids:
            if entity_id in known:
                self._selected.setdefault(entity_id, None)

    def deselect(self, ids: Iterable[str]) -> None:
        for entity_id in ids:
            self._selected.pop(entity_id, None)

    def select_page(self) -> None:
        """Pick every candidate on the current page."""
        self.select(item.id for item in self.current_page())

    def select_all(self) -> None:
        """Pick every candidate passing the current filter."""
        self.select(item.id for item in self.visible)

    @property
    def selected(self) -> list[SelectionCandidate]:
        """Picked candidates, in original order."""
        return [item for item in self._source.items if item.id in self._selected]

    def confirm(self) -> SelectionResult:
        """Finish with the picked candidates."""
        return replace(self._source, items=tuple(self.selected), cancelled=False)

    def cancel(self) -> SelectionResult:
        """Abort; distinct from confirming an empty selection."""
        return SelectionResult.aborted()
