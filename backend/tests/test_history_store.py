"""
PokéCompanion Backend: Search History Store Tests
==================================================

What:  Tests for HistoryStore against a real (SQLite) database.
How:   The store runs on a FakeClock so every write gets a distinct, later
       timestamp. Trims run as background tasks, so tests that check
       retention first wait for them with wait_for_pending_trims().

What we test:
    ✅ Recording inserts, repeating bumps the same entry to the top
    ✅ Retention: 30 terms leave exactly the 25 newest
    ✅ Retention is per user
    ✅ Entries written while a trim runs are never deleted by it
    ✅ remove_entry / find_by_id on missing ids
    ✅ Blank and over-long terms are rejected before any write
    ✅ Storage failures surface as DatabaseError, trim failures never do
    ✅ Lookup-then-write upsert for dialects without ON CONFLICT
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from pokecompanion.exceptions import DatabaseError, NotFoundError, ValidationError
from pokecompanion.models.search_history import SearchHistoryEntry
from pokecompanion.services.history_store import HISTORY_LIMIT, HistoryStore


def _broken_factory():
    raise OperationalError("SELECT 1", {}, Exception("database is unavailable"))


def _factory_writing_after_first_query(session_factory, write):
    """
    Sessions that run `write` (on its own session) right after their first
    execute(), i.e. between a trim's SELECT and its DELETE.
    """

    def factory():
        session = session_factory()
        execute = session.execute

        async def execute_then_write(*args, **kwargs):
            result = await execute(*args, **kwargs)
            session.execute = execute
            await write()
            return result

        session.execute = execute_then_write
        return session

    return factory


async def _count_entries(session_factory, user_id: int) -> int:
    async with session_factory() as session:
        return await session.scalar(
            select(func.count())
            .select_from(SearchHistoryEntry)
            .where(SearchHistoryEntry.user_id == user_id)
        )


class TestRecordSearch:
    """Tests for the upsert behavior of record_search."""

    @pytest.mark.asyncio
    async def test_first_search_creates_entry(self, history_store):
        entry = await history_store.record_search(1, "pikachu")

        assert entry.id is not None
        assert entry.user_id == 1
        assert entry.search_term == "pikachu"

        recent = await history_store.get_recent(1)
        assert [e.search_term for e in recent] == ["pikachu"]

    @pytest.mark.asyncio
    async def test_repeat_search_bumps_existing_entry(self, history_store):
        """Searching a term again moves it to the top without duplicating it."""
        first = await history_store.record_search(1, "pikachu")
        await history_store.record_search(1, "bulbasaur")
        repeated = await history_store.record_search(1, "pikachu")

        assert repeated.id == first.id
        assert repeated.created_at > first.created_at

        recent = await history_store.get_recent(1)
        assert [e.search_term for e in recent] == ["pikachu", "bulbasaur"]

    @pytest.mark.asyncio
    async def test_same_term_for_different_users_is_separate(self, history_store):
        ash = await history_store.record_search(1, "pikachu")
        misty = await history_store.record_search(2, "pikachu")

        assert ash.id != misty.id
        assert len(await history_store.get_recent(1)) == 1
        assert len(await history_store.get_recent(2)) == 1

    @pytest.mark.asyncio
    async def test_terms_are_case_sensitive(self, history_store):
        await history_store.record_search(1, "Pikachu")
        await history_store.record_search(1, "pikachu")

        recent = await history_store.get_recent(1)
        assert [e.search_term for e in recent] == ["pikachu", "Pikachu"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("term", ["", "   ", None, 25])
    async def test_blank_or_non_string_term_rejected(self, history_store, session_factory, term):
        with pytest.raises(ValidationError) as exc_info:
            await history_store.record_search(1, term)

        assert exc_info.value.field == "searchTerm"
        assert await _count_entries(session_factory, 1) == 0

    @pytest.mark.asyncio
    async def test_over_long_term_rejected(self, history_store, session_factory):
        with pytest.raises(ValidationError):
            await history_store.record_search(1, "m" * 257)

        assert await _count_entries(session_factory, 1) == 0

    @pytest.mark.asyncio
    async def test_storage_failure_raises_database_error(self, clock):
        store = HistoryStore(_broken_factory, clock=clock)

        with pytest.raises(DatabaseError) as exc_info:
            await store.record_search(1, "pikachu")

        assert isinstance(exc_info.value.__cause__, OperationalError)
        assert not store._trim_tasks


class TestRetention:
    """Tests for background trimming to the history limit."""

    @pytest.mark.asyncio
    async def test_thirty_terms_leave_the_newest_twenty_five(self, history_store, session_factory):
        for i in range(1, 31):
            await history_store.record_search(1, f"t{i}")
        await history_store.wait_for_pending_trims()

        recent = await history_store.get_recent(1)
        assert [e.search_term for e in recent] == [f"t{i}" for i in range(30, 5, -1)]
        assert await _count_entries(session_factory, 1) == HISTORY_LIMIT

    @pytest.mark.asyncio
    async def test_under_limit_keeps_everything(self, history_store, session_factory):
        for i in range(HISTORY_LIMIT):
            await history_store.record_search(1, f"t{i}")
        await history_store.wait_for_pending_trims()

        assert await _count_entries(session_factory, 1) == HISTORY_LIMIT

    @pytest.mark.asyncio
    async def test_repeated_old_term_survives_trim(self, session_factory, clock):
        store = HistoryStore(session_factory, limit=3, clock=clock)
        for term in ["eevee", "vaporeon", "jolteon", "eevee", "flareon"]:
            await store.record_search(1, term)
        await store.wait_for_pending_trims()

        recent = await store.get_recent(1)
        assert [e.search_term for e in recent] == ["flareon", "eevee", "jolteon"]

    @pytest.mark.asyncio
    async def test_trim_only_touches_the_searching_user(self, session_factory, clock):
        store = HistoryStore(session_factory, limit=2, clock=clock)
        await store.record_search(2, "onix")
        for term in ["a", "b", "c", "d"]:
            await store.record_search(1, term)
        await store.wait_for_pending_trims()

        assert await _count_entries(session_factory, 1) == 2
        assert [e.search_term for e in await store.get_recent(2)] == ["onix"]

    @pytest.mark.asyncio
    async def test_insert_during_trim_is_not_deleted(self, session_factory, clock):
        writer = HistoryStore(session_factory, limit=10, clock=clock)
        for term in ["a", "b", "c"]:
            await writer.record_search(1, term)
        trimmer = HistoryStore(
            _factory_writing_after_first_query(
                session_factory, lambda: writer.record_search(1, "d")
            ),
            limit=3,
            clock=clock,
        )

        assert await trimmer._trim(1) == 0
        assert await _count_entries(session_factory, 1) == 4

        # The next trim brings the user back to the limit
        follow_up = HistoryStore(session_factory, limit=3, clock=clock)
        assert await follow_up._trim(1) == 1
        recent = await follow_up.get_recent(1)
        assert [e.search_term for e in recent] == ["d", "c", "b"]
        await writer.wait_for_pending_trims()

    @pytest.mark.asyncio
    async def test_repeat_during_trim_is_not_deleted(self, session_factory, clock):
        writer = HistoryStore(session_factory, limit=10, clock=clock)
        for term in ["a", "b", "c", "d"]:
            await writer.record_search(1, term)
        trimmer = HistoryStore(
            _factory_writing_after_first_query(
                session_factory, lambda: writer.record_search(1, "a")
            ),
            limit=3,
            clock=clock,
        )

        # "a" was outside the kept set when the trim read it
        assert await trimmer._trim(1) == 0
        assert await _count_entries(session_factory, 1) == 4

        follow_up = HistoryStore(session_factory, limit=3, clock=clock)
        assert await follow_up._trim(1) == 1
        recent = await follow_up.get_recent(1)
        assert [e.search_term for e in recent] == ["a", "d", "c"]
        await writer.wait_for_pending_trims()

    @pytest.mark.asyncio
    async def test_trim_failure_is_swallowed(self, clock):
        store = HistoryStore(_broken_factory, clock=clock)

        assert await store._trim(1) == 0

    @pytest.mark.asyncio
    async def test_record_search_does_not_wait_for_trim(self, history_store):
        """A failing background trim never reaches the caller."""
        with patch.object(history_store, "_trim", AsyncMock(side_effect=RuntimeError("boom"))):
            entry = await history_store.record_search(1, "mew")
            await history_store.wait_for_pending_trims()

        assert entry.search_term == "mew"
        assert not history_store._trim_tasks

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            HistoryStore(MagicMock(), limit=0)


class TestLookupAndRemove:
    """Tests for find_by_id, remove_entry and get_recent edge cases."""

    @pytest.mark.asyncio
    async def test_get_recent_for_unknown_user_is_empty(self, history_store):
        assert await history_store.get_recent(999) == []

    @pytest.mark.asyncio
    async def test_find_by_id(self, history_store):
        entry = await history_store.record_search(1, "snorlax")

        found = await history_store.find_by_id(entry.id)
        assert found is not None
        assert found.user_id == 1
        assert await history_store.find_by_id(entry.id + 1000) is None

    @pytest.mark.asyncio
    async def test_remove_entry_returns_deleted_entry(self, history_store):
        entry = await history_store.record_search(1, "snorlax")

        removed = await history_store.remove_entry(entry.id)

        assert removed.id == entry.id
        assert removed.search_term == "snorlax"
        assert await history_store.find_by_id(entry.id) is None
        assert await history_store.get_recent(1) == []

    @pytest.mark.asyncio
    async def test_remove_missing_entry_raises_not_found(self, history_store):
        with pytest.raises(NotFoundError):
            await history_store.remove_entry(4242)

    @pytest.mark.asyncio
    async def test_remove_twice_raises_not_found(self, history_store):
        entry = await history_store.record_search(1, "snorlax")
        await history_store.remove_entry(entry.id)

        with pytest.raises(NotFoundError):
            await history_store.remove_entry(entry.id)


class TestLookupUpsert:
    """The lookup-then-write path used by dialects without ON CONFLICT."""

    @pytest.mark.asyncio
    async def test_insert_then_bump(self, history_store):
        with patch("pokecompanion.services.history_store._NATIVE_UPSERT", {}):
            first = await history_store.record_search(1, "ditto")
            await history_store.record_search(1, "mew")
            again = await history_store.record_search(1, "ditto")

        assert again.id == first.id
        assert again.created_at > first.created_at
        recent = await history_store.get_recent(1)
        assert [e.search_term for e in recent] == ["ditto", "mew"]
