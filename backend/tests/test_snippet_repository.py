"""
CodeSnippet Manager Backend: Snippet Repository Tests
======================================================

What:  Tests for the create/delete write path.
How:   Real SQLite database for the invariants; a store subclass that fails
       at a chosen step for the rollback cases; mock sessions for
       infrastructure failures.

What we test:
    ✅ Duplicate tags collapse; new tags are created once
    ✅ Tags are shared between snippets
    ✅ Any tag failure rolls back snippet, tags and links
    ✅ Validation happens before the store is touched
    ✅ Delete reports found / not found and cascades links
"""

import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError

from snippet_manager.exceptions import (
    ConstraintViolation,
    DanglingReferenceError,
    PersistenceError,
    ValidationError,
)
from snippet_manager.models.snippet import Snippet, Tag, snippet_tags
from snippet_manager.services.snippet_repository import (
    SnippetRepository,
    distinct_tag_names,
    parse_snippet_id,
)
from snippet_manager.services.snippet_store import SnippetStore


def failing_store(method: str, fail_on_call: int, exc: Exception):
    """Store class whose `method` raises `exc` on its Nth call."""
    calls = {"count": 0}
    original = getattr(SnippetStore, method)

    async def wrapper(self, *args):
        calls["count"] += 1
        if calls["count"] == fail_on_call:
            raise exc
        return await original(self, *args)

    return type("FailingStore", (SnippetStore,), {method: wrapper})


class TestCreateSnippet:

    @pytest.mark.asyncio
    async def test_duplicate_tags_collapse(self, make_snippet, count_rows):
        record = await make_snippet("t", code="c", language="javascript", tags=["x", "x", "y"])

        assert record.tags == ["x", "y"]
        assert await count_rows(Tag.__table__) == 2
        assert await count_rows(snippet_tags) == 2

    @pytest.mark.asyncio
    async def test_tags_are_reused_across_snippets(self, make_snippet, count_rows):
        first = await make_snippet("Map", tags=["array"])
        second = await make_snippet("Filter", tags=["array"])

        assert first.id != second.id
        assert await count_rows(Tag.__table__, Tag.name == "array") == 1
        assert await count_rows(snippet_tags) == 2

    @pytest.mark.asyncio
    async def test_without_tags(self, make_snippet, count_rows):
        record = await make_snippet("Hello", code="print('hello')", language="python")

        assert record.tags == []
        assert record.language == "python"
        assert await count_rows(Snippet.__table__) == 1
        assert await count_rows(snippet_tags) == 0

    @pytest.mark.asyncio
    async def test_record_fields(self, make_snippet):
        code = "    indented()\n"
        record = await make_snippet("  Padded title  ", code=code, language="  ", tags=[" a ", ""])

        assert record.id > 0
        assert record.title == "Padded title"
        assert record.code == code
        assert record.language == "javascript"
        assert record.tags == ["a"]
        assert record.created_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,fail_on_call,exc",
        [
            ("link_snippet_tag", 2, DanglingReferenceError(snippet_id=1, tag_id=2)),
            ("insert_tag_if_absent", 2, ConstraintViolation()),
            ("link_snippet_tag", 3, OperationalError("INSERT", {}, Exception("disk I/O error"))),
        ],
    )
    async def test_tag_failure_rolls_back_everything(
        self, session_factory, count_rows, method, fail_on_call, exc
    ):
        repository = SnippetRepository(store_factory=failing_store(method, fail_on_call, exc))

        async with session_factory() as session:
            with pytest.raises(PersistenceError) as exc_info:
                await repository.create_snippet(
                    session, title="Atomic", code="x = 1", tags=["one", "two", "three"],
                )

        assert exc_info.value.__cause__ is exc
        assert await count_rows(Snippet.__table__) == 0
        assert await count_rows(Tag.__table__) == 0
        assert await count_rows(snippet_tags) == 0

    @pytest.mark.asyncio
    async def test_rollback_keeps_previously_committed_tags(
        self, make_snippet, session_factory, count_rows
    ):
        await make_snippet("Existing", tags=["one"])
        repository = SnippetRepository(
            store_factory=failing_store("link_snippet_tag", 2, DanglingReferenceError()),
        )

        async with session_factory() as session:
            with pytest.raises(PersistenceError):
                await repository.create_snippet(
                    session, title="Atomic", code="x = 1", tags=["one", "new"],
                )

        assert await count_rows(Snippet.__table__) == 1
        assert await count_rows(Tag.__table__) == 1
        assert await count_rows(Tag.__table__, Tag.name == "new") == 0
        assert await count_rows(snippet_tags) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "title,code",
        [(None, "x = 1"), ("", "x = 1"), ("   ", "x = 1"), ("Title", None), ("Title", " \n ")],
    )
    async def test_missing_title_or_code_never_reaches_store(self, mock_db_session, title, code):
        store_factory = MagicMock()
        repository = SnippetRepository(store_factory=store_factory)

        with pytest.raises(ValidationError) as exc_info:
            await repository.create_snippet(mock_db_session, title=title, code=code)

        assert exc_info.value.message == "Title and code are required"
        store_factory.assert_not_called()
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, mock_db_session):
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("db down"))
        repository = SnippetRepository()

        with pytest.raises(PersistenceError) as exc_info:
            await repository.create_snippet(mock_db_session, title="t", code="c")

        assert exc_info.value.context["step"] == "insert_snippet"
        mock_db_session.rollback.assert_awaited_once()
        mock_db_session.commit.assert_not_awaited()


class TestDeleteSnippet:

    @pytest.mark.asyncio
    async def test_existing_snippet(self, make_snippet, session_factory, count_rows):
        record = await make_snippet("Map", tags=["array", "functional"])

        async with session_factory() as session:
            result = await SnippetRepository().delete_snippet(session, record.id)

        assert result.found is True
        assert await count_rows(Snippet.__table__) == 0
        assert await count_rows(snippet_tags) == 0
        assert await count_rows(Tag.__table__) == 2

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_an_error(self, session_factory):
        async with session_factory() as session:
            result = await SnippetRepository().delete_snippet(session, 424242)

        assert result.found is False

    @pytest.mark.asyncio
    async def test_numeric_string_id(self, make_snippet, session_factory):
        record = await make_snippet("Map")

        async with session_factory() as session:
            result = await SnippetRepository().delete_snippet(session, str(record.id))

        assert result.found is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("huge_id", ["99999999999999999999999", 2**63])
    async def test_id_beyond_column_range_is_not_found(self, session_factory, huge_id):
        async with session_factory() as session:
            result = await SnippetRepository().delete_snippet(session, huge_id)

        assert result.found is False

    @pytest.mark.asyncio
    async def test_id_beyond_column_range_never_reaches_store(self, mock_db_session):
        result = await SnippetRepository().delete_snippet(mock_db_session, 2**63)

        assert result.found is False
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_largest_column_id_is_queried(self, session_factory):
        async with session_factory() as session:
            result = await SnippetRepository().delete_snippet(session, str(2**63 - 1))

        assert result.found is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["abc", "", "1.5", "-3", 0, -1, True])
    async def test_invalid_id_never_reaches_store(self, mock_db_session, bad_id):
        with pytest.raises(ValidationError):
            await SnippetRepository().delete_snippet(mock_db_session, bad_id)
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("DELETE", {}, Exception("db down"))

        with pytest.raises(PersistenceError):
            await SnippetRepository().delete_snippet(mock_db_session, 1)
        mock_db_session.rollback.assert_awaited_once()


class TestHelpers:

    def test_distinct_tag_names_keeps_first_occurrence(self):
        assert distinct_tag_names(["b", " a", "b ", "", "  ", "a"]) == ["b", "a"]

    def test_distinct_tag_names_is_case_sensitive(self):
        assert distinct_tag_names(["Array", "array"]) == ["Array", "array"]

    @pytest.mark.parametrize("raw,expected", [(7, 7), ("7", 7), (" 12 ", 12)])
    def test_parse_snippet_id(self, raw, expected):
        assert parse_snippet_id(raw) == expected
