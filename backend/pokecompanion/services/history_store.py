"""
PokéCompanion Backend: Bounded Search History Store
====================================================

What:  Keeps, per user, a capped, de-duplicated, recency-ordered set of recent
       search terms.
How:   Every write is an atomic upsert keyed on (user_id, search_term). After
       each write a detached background task trims the user's history down to
       the `limit` most recently touched entries.
Who:   Constructed once by create_app() and handed to the search-history
       routes through dependency injection (see dependencies.py).

Write path (POST /api/search-history):
    ┌──────────────┐    ┌──────────────────┐    ┌─────────────────────┐
    │ record_search│───▶│ INSERT ... ON    │───▶│ return entry        │
    │              │    │ CONFLICT UPDATE  │    └─────────────────────┘
    └──────────────┘    └──────────────────┘
                                 │ create_task (not awaited)
                                 ▼
                        ┌──────────────────┐
                        │ _trim(user_id)   │  failures logged, never raised
                        └──────────────────┘

Trimming:
    1. SELECT the ids of the `limit` most recent entries of the user
    2. Fewer than `limit` rows: nothing to do
    3. Otherwise DELETE the user's entries outside that set that are no newer
       than the oldest kept entry

    An insert or repeat that lands between a trim's read and its delete can
    leave the user one entry over the limit. The next trim removes it.

Sessions:
    The store opens its own sessions from the factory it was given, since the
    trim outlives the request that triggered it. The factory must be built
    with expire_on_commit=False so returned entries stay readable.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pokecompanion.exceptions import DatabaseError, NotFoundError, ValidationError
from pokecompanion.models.search_history import SEARCH_TERM_MAX_LENGTH, SearchHistoryEntry

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 25

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE ... RETURNING
_NATIVE_UPSERT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryStore:
    """
    Per-user bounded search history backed by the `search_history` table.

    Args:
        session_factory: async_sessionmaker (expire_on_commit=False)
        limit:           maximum retained entries per user
        clock:           returns the "now" stamped on inserts and repeats
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        limit: int = HISTORY_LIMIT,
        clock: Callable[[], datetime] = utcnow,
    ):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._session_factory = session_factory
        self.limit = limit
        self._clock = clock
        # Strong references to in-flight trims; the event loop only keeps weak ones
        self._trim_tasks: Set[asyncio.Task] = set()

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_recent(self, user_id: int) -> List[SearchHistoryEntry]:
        """
        Up to `limit` entries of the user, most recently touched first.
        An unknown user or an empty history yields an empty list.
        """
        stmt = (
            select(SearchHistoryEntry)
            .where(SearchHistoryEntry.user_id == user_id)
            .order_by(SearchHistoryEntry.created_at.desc(), SearchHistoryEntry.id.desc())
            .limit(self.limit)
        )
        try:
            async with self._session_factory() as session:
                result = await session.scalars(stmt)
                return list(result.all())
        except SQLAlchemyError as e:
            logger.error("Database error listing search history for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not retrieve search history. Please try again.",
                context={"user_id": user_id},
            ) from e

    async def find_by_id(self, entry_id: int) -> Optional[SearchHistoryEntry]:
        """Read-only lookup used by callers to verify ownership before deleting."""
        try:
            async with self._session_factory() as session:
                return await session.get(SearchHistoryEntry, entry_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching search history entry %s: %s", entry_id, e)
            raise DatabaseError(
                message="Could not retrieve the search history entry. Please try again.",
                context={"entry_id": entry_id},
            ) from e

    # ── Writes ────────────────────────────────────────────────────────────

    async def record_search(self, user_id: int, search_term: str) -> SearchHistoryEntry:
        """
        Record that `user_id` searched for `search_term`.

        Inserts a new entry, or refreshes created_at of the existing entry for
        the same (user, term) pair so it moves to the top of the history. The
        term is stored exactly as received; callers strip it beforehand.

        Returns:
            The entry after the insert or update.

        Raises:
            ValidationError: blank or over-long term
            DatabaseError:   the upsert failed (not retried)
        """
        if not isinstance(search_term, str) or not search_term.strip():
            raise ValidationError(message="Search term must not be empty", field="searchTerm")
        if len(search_term) > SEARCH_TERM_MAX_LENGTH:
            raise ValidationError(
                message=f"Search term must be at most {SEARCH_TERM_MAX_LENGTH} characters",
                field="searchTerm",
            )

        now = self._clock()
        logger.info("Saving search history (user=%s, term=%r)", user_id, search_term)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    entry = await self._upsert(session, user_id, search_term, now)
        except SQLAlchemyError as e:
            logger.error("Database error saving search term for user %s: %s", user_id, e)
            raise DatabaseError(
                message="Could not save the search term. Please try again.",
                context={"user_id": user_id},
            ) from e

        self._schedule_trim(user_id)
        return entry

    async def remove_entry(self, entry_id: int) -> SearchHistoryEntry:
        """
        Delete one entry by id and return its state prior to deletion.

        Ownership is not checked here; the search-history route verifies it
        with find_by_id() first.

        Raises:
            NotFoundError: no entry with that id
            DatabaseError: the delete failed
        """
        logger.info("Removing search history entry %s", entry_id)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    entry = await session.get(SearchHistoryEntry, entry_id)
                    if entry is None:
                        raise NotFoundError(resource="search history entry", resource_id=entry_id)
                    await session.delete(entry)
            return entry
        except SQLAlchemyError as e:
            logger.error("Database error removing search history entry %s: %s", entry_id, e)
            raise DatabaseError(
                message="Could not delete the search history entry. Please try again.",
                context={"entry_id": entry_id},
            ) from e

    # ── Upsert strategies ─────────────────────────────────────────────────

    async def _upsert(
        self,
        session: AsyncSession,
        user_id: int,
        search_term: str,
        now: datetime,
    ) -> SearchHistoryEntry:
        insert = _NATIVE_UPSERT.get(session.bind.dialect.name)
        if insert is None:
            return await self._upsert_by_lookup(session, user_id, search_term, now)

        stmt = (
            insert(SearchHistoryEntry)
            .values(user_id=user_id, search_term=search_term, created_at=now)
            .on_conflict_do_update(
                index_elements=[SearchHistoryEntry.user_id, SearchHistoryEntry.search_term],
                set_={"created_at": now},
            )
            .returning(SearchHistoryEntry)
        )
        result = await session.scalars(stmt, execution_options={"populate_existing": True})
        return result.one()

    async def _upsert_by_lookup(
        self,
        session: AsyncSession,
        user_id: int,
        search_term: str,
        now: datetime,
    ) -> SearchHistoryEntry:
        """
        Two-path upsert for dialects without ON CONFLICT: update the locked
        existing row, or insert a new one. A concurrent insert of the same
        pair surfaces as an IntegrityError (DatabaseError to the caller).
        """
        existing = await session.scalar(
            select(SearchHistoryEntry)
            .where(
                SearchHistoryEntry.user_id == user_id,
                SearchHistoryEntry.search_term == search_term,
            )
            .with_for_update()
        )
        if existing is not None:
            existing.created_at = now
            await session.flush()
            return existing

        entry = SearchHistoryEntry(user_id=user_id, search_term=search_term, created_at=now)
        session.add(entry)
        await session.flush()
        return entry

    # ── Retention trimming ────────────────────────────────────────────────

    def _schedule_trim(self, user_id: int) -> None:
        task = asyncio.create_task(self._trim(user_id), name=f"history-trim-{user_id}")
        self._trim_tasks.add(task)
        task.add_done_callback(self._trim_tasks.discard)

    async def _trim(self, user_id: int) -> int:
        """
        Delete every entry of the user outside the `limit` most recent ones.

        Best-effort: any failure is logged and swallowed so it never reaches
        the record_search() call that scheduled it.

        Returns:
            Number of deleted entries (0 on failure or when under the limit).
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    kept = (
                        await session.execute(
                            select(SearchHistoryEntry.id, SearchHistoryEntry.created_at)
                            .where(SearchHistoryEntry.user_id == user_id)
                            .order_by(
                                SearchHistoryEntry.created_at.desc(),
                                SearchHistoryEntry.id.desc(),
                            )
                            .limit(self.limit)
                        )
                    ).all()

                    if len(kept) < self.limit:
                        return 0

                    # Rows written after the SELECT are newer than the cutoff
                    # and survive until the next trim
                    cutoff = kept[-1].created_at
                    result = await session.execute(
                        delete(SearchHistoryEntry)
                        .where(
                            SearchHistoryEntry.user_id == user_id,
                            SearchHistoryEntry.created_at <= cutoff,
                            SearchHistoryEntry.id.not_in([row.id for row in kept]),
                        )
                        .execution_options(synchronize_session=False)
                    )
                    deleted = result.rowcount or 0
        except Exception:
            logger.error(
                "Non-fatal error while trimming search history for user %s",
                user_id,
                exc_info=True,
            )
            return 0

        if deleted:
            logger.info("Trimmed %d old search history entries for user %s", deleted, user_id)
        return deleted

    async def wait_for_pending_trims(self) -> None:
        """
        Wait until every scheduled trim has finished.

        Used on application shutdown so trims are not cut off mid-transaction.
        """
        while self._trim_tasks:
            await asyncio.gather(*list(self._trim_tasks), return_exceptions=True)
