"""Unit tests for list resolution."""

from typing import Any

from ftclean.core.scope import ProjectScope
from ftclean.remote.lists import MEMBER_CHUNK_SIZE, EntityList, ListResolver

LIST_ROWS = [
    {"id": "l1", "name": "Client Review", "category": {"name": "Review"}, "project": {"name": "feat"}},
    {"id": "l2", "name": "Old Dailies", "category": None, "project": {"name": "feat"}},
]


class TestFetchLists:
    """Tests for ListResolver.fetch_lists and find_list."""

    def test_fetch(self, fake_reader: Any) -> None:
        reader = fake_reader(lambda q: LIST_ROWS)
        lists = ListResolver(reader, ProjectScope("p1")).fetch_lists()

        assert lists[0] == EntityList("l1", "Client Review", "Review", "feat")
        assert lists[1].category is None
        assert 'from List where project.id is "p1" order by' in reader.queries[0]

    def test_find_by_id_then_name(self, fake_reader: Any) -> None:
        resolver = ListResolver(fake_reader(lambda q: LIST_ROWS), ProjectScope())
        found_by_id = resolver.find_list("l2")
        found_by_name = resolver.find_list("CLIENT review")
        assert found_by_id is not None
        assert found_by_id.name == "Old Dailies"
        assert found_by_name is not None
        assert found_by_name.id == "l1"
        assert resolver.find_list("missing") is None


class TestMemberIds:
    """Tests for ListResolver.member_ids."""

    def test_filters_by_type_and_dedupes(self, fake_reader: Any) -> None:
        links = [{"entity_id": e} for e in ("v1", "shot1", "v2", "v1")]

        def respond(query: str) -> list[dict[str, Any]]:
            if "ListObject" in query:
                return links
            return [{"id": i} for i in ("v1", "v2", "v1") if f'"{i}"' in query]

        reader = fake_reader(respond)
        members = ListResolver(reader, ProjectScope("p1")).member_ids("l1")

        assert members == ["v1", "v2"]
        assert "project.id" not in reader.queries[0]
        assert 'project.id is "p1"' in reader.queries[1]

    def test_chunks(self, fake_reader: Any) -> None:
        links = [{"entity_id": f"v{i}"} for i in range(MEMBER_CHUNK_SIZE * 2 + 1)]
        reader = fake_reader(lambda q: links if "ListObject" in q else [])

        ListResolver(reader, ProjectScope()).member_ids("l1")

        assert len(reader.queries) == 1 + 3

    def test_empty(self, fake_reader: Any) -> None:
        reader = fake_reader()
        resolver = ListResolver(reader, ProjectScope())
        assert resolver.member_ids("l1") == []
        assert resolver.member_ids("") == []
        assert len(reader.queries) == 1
