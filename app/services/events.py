"""Типизированные события аудита и буфер, который отдает их в sink после коммита."""

from dataclasses import asdict, dataclass
from typing import ClassVar, Union

from app.core.logging import setup_logger
from app.services.ports import EventSink

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ForcedRematch:
    event_type: ClassVar[str] = "pairing_forced_rematch"

    player1_id: int
    player2_id: int
    reason: str


@dataclass(frozen=True)
class MultipleBye:
    event_type: ClassVar[str] = "pairing_multiple_bye"

    player_id: int
    reason: str


@dataclass(frozen=True)
class TournamentStatusChanged:
    event_type: ClassVar[str] = "tournament_status_changed"

    from_status: str
    to_status: str


@dataclass(frozen=True)
class RoundStatusChanged:
    event_type: ClassVar[str] = "round_status_changed"

    round_id: int
    round_number: int
    from_status: str
    to_status: str


@dataclass(frozen=True)
class RegistrationCreated:
    event_type: ClassVar[str] = "registration_created"

    registration_id: int
    profile_id: int


@dataclass(frozen=True)
class RegistrationWithdrawn:
    event_type: ClassVar[str] = "registration_withdrawn"

    profile_id: int


@dataclass(frozen=True)
class RegistrationCheckedIn:
    event_type: ClassVar[str] = "registration_checked_in"

    profile_id: int


@dataclass(frozen=True)
class CheckInUndone:
    event_type: ClassVar[str] = "registration_check_in_undone"

    profile_id: int


@dataclass(frozen=True)
class PlayerDropped:
    event_type: ClassVar[str] = "player_dropped"

    profile_id: int


@dataclass(frozen=True)
class MatchResultReported:
    event_type: ClassVar[str] = "match_result_reported"

    match_id: int
    round_id: int
    winner_profile_id: int | None
    game_wins1: int
    game_wins2: int


TournamentEvent = Union[
    ForcedRematch,
    MultipleBye,
    TournamentStatusChanged,
    RoundStatusChanged,
    RegistrationCreated,
    RegistrationWithdrawn,
    RegistrationCheckedIn,
    CheckInUndone,
    PlayerDropped,
    MatchResultReported,
]


def event_payload(event: TournamentEvent) -> dict:
    return asdict(event)


class EventRecorder:
    """Копит события в рамках одной операции; отправляет их только после успешного коммита."""

    def __init__(self) -> None:
        self._pending: list[tuple[int, TournamentEvent]] = []

    def record(self, tournament_id: int, event: TournamentEvent) -> None:
        self._pending.append((tournament_id, event))

    @property
    def pending(self) -> list[tuple[int, TournamentEvent]]:
        return list(self._pending)

    def discard(self) -> None:
        self._pending.clear()

    async def flush(self, sink: EventSink, actor_id: int | None) -> None:
        # Ошибка записи события не должна откатывать основную операцию.
        pending, self._pending = self._pending, []
        for tournament_id, event in pending:
            try:
                await sink.log_event(tournament_id, event, actor_id)
            except Exception:
                logger.exception("Failed to log %s for tournament %s", event.event_type, tournament_id)
