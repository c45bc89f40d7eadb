"""Реестр регистраций: запись с лимитом мест, отказ, чек-ин и выбывание игроков."""

from datetime import datetime

from app.core.config import Settings
from app.core.errors import (
    AlreadyRegistered,
    InvalidTransition,
    NotFound,
    NotRegistered,
    TournamentFull,
    TournamentNotOpen,
    ValidationError,
)
from app.core.logging import setup_logger
from app.models.registration import RegistrationStatus, TournamentRegistration
from app.models.tournament import Tournament, TournamentStatus
from app.services.events import (
    CheckInUndone,
    EventRecorder,
    PlayerDropped,
    RegistrationCheckedIn,
    RegistrationCreated,
    RegistrationWithdrawn,
)
from app.services.ports import UnitOfWork
from app.services.standings import StandingsCalculator

logger = setup_logger(__name__)

CHECK_IN_ALLOWED_FROM = frozenset(
    {
        RegistrationStatus.PENDING.value,
        RegistrationStatus.REGISTERED.value,
        RegistrationStatus.CONFIRMED.value,
    }
)
CHECK_IN_REJECTIONS = {
    RegistrationStatus.CHECKED_IN.value: "Already checked in",
    RegistrationStatus.DROPPED.value: "Cannot check in after dropping from the tournament",
    RegistrationStatus.WITHDRAWN.value: "Cannot check in after withdrawing",
    RegistrationStatus.WAITLIST.value: "Cannot check in from the waitlist",
}


class RegistrationLedger:
    def __init__(
        self,
        uow: UnitOfWork,
        events: EventRecorder,
        settings: Settings,
        standings: StandingsCalculator,
    ) -> None:
        self.uow = uow
        self.events = events
        self.settings = settings
        self.standings = standings

    def validate(self, team_name: str | None, notes: str | None) -> None:
        if team_name is not None:
            if not team_name.strip():
                raise ValidationError("Team name must not be empty")
            if len(team_name) > self.settings.team_name_max_length:
                raise ValidationError(
                    f"Team name must be at most {self.settings.team_name_max_length} characters"
                )
        if notes is not None and len(notes) > self.settings.notes_max_length:
            raise ValidationError(f"Notes must be at most {self.settings.notes_max_length} characters")

    async def register(
        self,
        tournament_id: int,
        profile_id: int,
        team_name: str | None = None,
        notes: str | None = None,
    ) -> TournamentRegistration:
        self.validate(team_name, notes)

        # Блокировка строки турнира выстраивает конкурентные регистрации в очередь.
        tournament = await self.uow.tournaments.get_for_update(tournament_id)
        if tournament is None:
            raise NotFound("Tournament not found")
        if await self.uow.registrations.get(tournament_id, profile_id) is not None:
            raise AlreadyRegistered("Already registered for this tournament")
        if tournament.status != TournamentStatus.UPCOMING.value:
            raise TournamentNotOpen("Tournament is not open for registration")

        registration = await self.uow.registrations.add(
            TournamentRegistration(
                tournament_id=tournament_id,
                profile_id=profile_id,
                status=RegistrationStatus.PENDING.value,
                team_name=team_name,
                notes=notes,
                registered_at=datetime.utcnow(),
            )
        )

        # Сначала вставка, затем подсчет: лишняя запись удаляется, если мест не осталось.
        if tournament.max_participants is not None:
            count = await self.uow.registrations.count(tournament_id)
            if count > tournament.max_participants:
                await self.uow.registrations.delete(registration)
                logger.info("Tournament %s is full, rejected profile %s", tournament_id, profile_id)
                raise TournamentFull("Tournament is full")

        self.events.record(
            tournament_id, RegistrationCreated(registration_id=registration.id, profile_id=profile_id)
        )
        return registration

    async def withdraw(self, tournament_id: int, profile_id: int) -> None:
        tournament = await self._tournament(tournament_id)
        registration = await self._registration(tournament_id, profile_id)
        if tournament.status in (TournamentStatus.ACTIVE.value, TournamentStatus.COMPLETED.value):
            raise InvalidTransition("Cannot withdraw after the tournament has started")
        await self.uow.registrations.delete(registration)
        self.events.record(tournament_id, RegistrationWithdrawn(profile_id=profile_id))

    async def check_in(self, tournament_id: int, profile_id: int) -> TournamentRegistration:
        tournament = await self._tournament(tournament_id)
        if tournament.status not in (TournamentStatus.UPCOMING.value, TournamentStatus.ACTIVE.value):
            raise TournamentNotOpen("Check-in is not open for this tournament")
        registration = await self._registration(tournament_id, profile_id)
        if registration.status in CHECK_IN_REJECTIONS:
            raise InvalidTransition(CHECK_IN_REJECTIONS[registration.status])
        if registration.status not in CHECK_IN_ALLOWED_FROM:
            raise InvalidTransition(f"Cannot check in from status {registration.status}")

        registration.status = RegistrationStatus.CHECKED_IN.value
        registration.checked_in_at = datetime.utcnow()
        await self.uow.registrations.save(registration)
        self.events.record(tournament_id, RegistrationCheckedIn(profile_id=profile_id))
        return registration

    async def undo_check_in(self, tournament_id: int, profile_id: int) -> TournamentRegistration:
        tournament = await self._tournament(tournament_id)
        if tournament.status != TournamentStatus.UPCOMING.value:
            raise InvalidTransition("Check-in can only be undone before the tournament starts")
        registration = await self._registration(tournament_id, profile_id)
        if registration.status != RegistrationStatus.CHECKED_IN.value:
            raise InvalidTransition("Player is not checked in")

        registration.status = RegistrationStatus.REGISTERED.value
        registration.checked_in_at = None
        await self.uow.registrations.save(registration)
        self.events.record(tournament_id, CheckInUndone(profile_id=profile_id))
        return registration

    async def drop(self, tournament_id: int, profile_id: int) -> TournamentRegistration:
        tournament = await self._tournament(tournament_id)
        if tournament.status not in (TournamentStatus.ACTIVE.value, TournamentStatus.PAUSED.value):
            raise InvalidTransition("Players can only drop from a running tournament")
        registration = await self._registration(tournament_id, profile_id)
        if registration.status == RegistrationStatus.DROPPED.value:
            raise InvalidTransition("Player has already dropped")

        registration.status = RegistrationStatus.DROPPED.value
        await self.uow.registrations.save(registration)

        await self.standings.mark_dropped(tournament_id, profile_id)

        self.events.record(tournament_id, PlayerDropped(profile_id=profile_id))
        logger.info("Profile %s dropped from tournament %s", profile_id, tournament_id)
        return registration

    async def eligible(self, tournament_id: int) -> list[TournamentRegistration]:
        return await self.uow.registrations.list_for_tournament(
            tournament_id, status=RegistrationStatus.CHECKED_IN.value
        )

    async def stats(self, tournament_id: int) -> dict[str, int]:
        await self._tournament(tournament_id)
        registrations = await self.uow.registrations.list_for_tournament(tournament_id)
        return {
            "total": len(registrations),
            "pending": sum(1 for r in registrations if r.status == RegistrationStatus.PENDING.value),
            "checkedIn": sum(1 for r in registrations if r.status == RegistrationStatus.CHECKED_IN.value),
            "withdrawn": sum(1 for r in registrations if r.status == RegistrationStatus.WITHDRAWN.value),
            "withTeams": sum(1 for r in registrations if r.team_id is not None),
        }

    async def _tournament(self, tournament_id: int) -> Tournament:
        tournament = await self.uow.tournaments.get(tournament_id)
        if tournament is None:
            raise NotFound("Tournament not found")
        return tournament

    async def _registration(self, tournament_id: int, profile_id: int) -> TournamentRegistration:
        registration = await self.uow.registrations.get(tournament_id, profile_id)
        if registration is None:
            raise NotRegistered("Not registered for this tournament")
        return registration
