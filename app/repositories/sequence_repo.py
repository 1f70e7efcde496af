from datetime import date
from typing import Awaitable, Callable, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.config.config import settings
from app.core.identifiers import DailySequenceFormat, today_utc
from app.core.utils import LoggerMixin
from app.models.sequence_model import IdentifierSequence


class SequenceExhaustedError(RuntimeError):
    """Raised when a counter row could not be claimed within the retry budget."""


class SequenceRepository(LoggerMixin):
    """
    Atomic per-scope counters stored in ``identifier_sequences``.

    Each call increments the row with a single ``UPDATE ... RETURNING`` and
    commits before the caller inserts its entity. Two concurrent callers can
    never receive the same value; a failed entity insert leaves a gap. A new
    counter row is inserted under a SAVEPOINT, so losing that race leaves the
    rest of the session intact.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _increment(self, scope: str) -> Optional[int]:
        result = await self.db.execute(
            update(IdentifierSequence)
            .where(IdentifierSequence.scope == scope)
            .values(last_value=IdentifierSequence.last_value + 1)
            .returning(IdentifierSequence.last_value)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    async def next_value(
        self, scope: str, seed: Callable[[], Awaitable[int]]
    ) -> int:
        """
        Claim the next value for ``scope``.

        Args:
            scope: Counter key, e.g. ``APT20241201``
            seed: Returns the highest value already in use for a scope that has
                no counter row yet

        Raises:
            SequenceExhaustedError: If the row could not be claimed after
                ``ID_GENERATION_MAX_ATTEMPTS`` attempts
        """
        for attempt in range(1, settings.ID_GENERATION_MAX_ATTEMPTS + 1):
            value = await self._increment(scope)
            if value is not None:
                await self.db.commit()
                return value

            start = await seed() + 1
            try:
                async with self.db.begin_nested():
                    self.db.add(IdentifierSequence(scope=scope, last_value=start))
            except IntegrityError:
                # Another request created the row first; increment theirs.
                self.log_debug(
                    {"event": "sequence_row_race", "scope": scope, "attempt": attempt}
                )
                continue
            await self.db.commit()
            return start

        self.log_error({"event": "sequence_exhausted", "scope": scope})
        raise SequenceExhaustedError(f"Could not allocate a sequence value for {scope}")

    async def next_daily_identifier(
        self, fmt: DailySequenceFormat, column, day: Optional[date] = None
    ) -> str:
        """
        Next ``<prefix><YYYYMMDD><seq>`` identifier for ``day`` (UTC today by default).

        ``column`` is the business-id column; on the first identifier of a day
        the counter starts after the highest id already stored for that day.
        """
        day = day or today_utc()
        scope = fmt.scope(day)

        async def seed() -> int:
            result = await self.db.execute(
                select(column)
                .where(column.like(f"{scope}%"))
                .order_by(func.length(column).desc(), column.desc())
                .limit(1)
            )
            last_identifier = result.scalars().first()
            if last_identifier is None:
                return 0
            return fmt.parse(last_identifier, day) or 0

        sequence = await self.next_value(scope, seed)
        return fmt.format(day, sequence)
