"""Журнал событий турнира в таблице tournament_events."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logging import setup_logger
from app.models.event import TournamentEventRecord
from app.services.events import TournamentEvent, event_payload

logger = setup_logger(__name__)


class SqlEventSink:
    # Пишет в отдельной сессии, чтобы не зависеть от транзакции операции.
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def log_event(self, tournament_id: int, event: TournamentEvent, actor_id: int | None = None) -> None:
        async with self.session_factory() as session:
            session.add(
                TournamentEventRecord(
                    tournament_id=tournament_id,
                    event_type=event.event_type,
                    event_data=event_payload(event),
                    actor_id=actor_id,
                )
            )
            await session.commit()
        logger.debug("Logged %s for tournament %s", event.event_type, tournament_id)
