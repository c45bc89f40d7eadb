import unittest

from app.core.config import Settings
from app.core.errors import (
    AlreadyRegistered,
    InvalidTransition,
    NotAuthenticated,
    NotFound,
    NotRegistered,
    PermissionDenied,
    TournamentFull,
    TournamentNotOpen,
    ValidationError,
)
from app.models.registration import RegistrationStatus
from app.models.tournament import TournamentStatus
from app.services.engine import TournamentEngine
from app.services.ports import Action, Actor
from tests.fakes import AllowAll, DenyAll, FakeUnitOfWork, RecordingSink

SETTINGS = Settings(database_url="sqlite+aiosqlite://")


class RegistrationLedgerTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.uow = FakeUnitOfWork()
        self.sink = RecordingSink()
        self.authorization = AllowAll()
        self.engine = TournamentEngine(self.uow, self.authorization, self.sink, settings=SETTINGS)

    async def test_register_creates_pending_registration_and_event(self) -> None:
        tournament = self.uow.add_tournament(max_participants=8)

        registration = await self.engine.register(tournament.id, Actor(profile_id=7), team_name="Mono Red")

        self.assertEqual(registration.status, RegistrationStatus.PENDING.value)
        self.assertEqual(registration.team_name, "Mono Red")
        self.assertEqual(self.uow.tournaments.locked, [tournament.id])
        self.assertEqual(self.uow.commits, 1)
        self.assertEqual(self.sink.types(), ["registration_created"])
        self.assertEqual(self.sink.logged[0][2], 7)
        self.assertEqual(self.authorization.calls[0][1], Action.TOURNAMENT_REGISTER)

    async def test_ninth_registration_is_rejected_and_count_stays_eight(self) -> None:
        tournament = self.uow.add_tournament(max_participants=8)
        for profile_id in range(1, 9):
            await self.engine.register(tournament.id, Actor(profile_id=profile_id))

        with self.assertRaises(TournamentFull):
            await self.engine.register(tournament.id, Actor(profile_id=9))

        self.assertEqual(await self.uow.registrations.count(tournament.id), 8)
        self.assertIsNone(await self.uow.registrations.get(tournament.id, 9))
        self.assertEqual(self.uow.rollbacks, 1)
        self.assertEqual(self.sink.types().count("registration_created"), 8)

    async def test_duplicate_registration(self) -> None:
        tournament = self.uow.add_tournament()
        await self.engine.register(tournament.id, Actor(profile_id=1))

        with self.assertRaises(AlreadyRegistered):
            await self.engine.register(tournament.id, Actor(profile_id=1))

    async def test_registration_needs_upcoming_tournament(self) -> None:
        tournament = self.uow.add_tournament(status=TournamentStatus.DRAFT.value)

        with self.assertRaises(TournamentNotOpen):
            await self.engine.register(tournament.id, Actor(profile_id=1))

    async def test_register_unknown_tournament(self) -> None:
        with self.assertRaises(NotFound):
            await self.engine.register(404, Actor(profile_id=1))

    async def test_team_name_and_notes_are_validated(self) -> None:
        tournament = self.uow.add_tournament()

        with self.assertRaises(ValidationError):
            await self.engine.register(tournament.id, Actor(profile_id=1), team_name="   ")
        with self.assertRaises(ValidationError):
            await self.engine.register(tournament.id, Actor(profile_id=1), team_name="x" * 101)
        with self.assertRaises(ValidationError):
            await self.engine.register(tournament.id, Actor(profile_id=1), notes="n" * 501)

        self.assertEqual(await self.uow.registrations.count(tournament.id), 0)

    async def test_anonymous_and_denied_actors(self) -> None:
        tournament = self.uow.add_tournament()

        with self.assertRaises(NotAuthenticated):
            await self.engine.register(tournament.id, None)

        denied = TournamentEngine(self.uow, DenyAll(), self.sink, settings=SETTINGS)
        with self.assertRaises(PermissionDenied):
            await denied.register(tournament.id, Actor(profile_id=1))
        self.assertEqual(await self.uow.registrations.count(tournament.id), 0)

    async def test_withdraw_before_start_deletes_registration(self) -> None:
        tournament = self.uow.add_tournament()
        await self.engine.register(tournament.id, Actor(profile_id=3))

        await self.engine.withdraw(tournament.id, Actor(profile_id=3))

        self.assertIsNone(await self.uow.registrations.get(tournament.id, 3))
        self.assertEqual(self.sink.types()[-1], "registration_withdrawn")

    async def test_withdraw_rejected_once_active(self) -> None:
        tournament = self.uow.add_tournament(status=TournamentStatus.ACTIVE.value)
        self.uow.add_registration(tournament.id, 3, RegistrationStatus.CHECKED_IN.value)

        with self.assertRaises(InvalidTransition):
            await self.engine.withdraw(tournament.id, Actor(profile_id=3))
        with self.assertRaises(NotRegistered):
            await self.engine.withdraw(tournament.id, Actor(profile_id=4))

    async def test_check_in_and_undo(self) -> None:
        tournament = self.uow.add_tournament()
        await self.engine.register(tournament.id, Actor(profile_id=5))

        registration = await self.engine.check_in(tournament.id, Actor(profile_id=5))
        self.assertEqual(registration.status, RegistrationStatus.CHECKED_IN.value)
        self.assertIsNotNone(registration.checked_in_at)

        with self.assertRaises(InvalidTransition):
            await self.engine.check_in(tournament.id, Actor(profile_id=5))

        registration = await self.engine.undo_check_in(tournament.id, Actor(profile_id=5))
        self.assertEqual(registration.status, RegistrationStatus.REGISTERED.value)
        self.assertIsNone(registration.checked_in_at)
        self.assertEqual(
            self.sink.types(),
            ["registration_created", "registration_checked_in", "registration_check_in_undone"],
        )

    async def test_check_in_rejected_for_dropped_withdrawn_and_waitlist(self) -> None:
        tournament = self.uow.add_tournament()
        for profile_id, status in (
            (1, RegistrationStatus.DROPPED.value),
            (2, RegistrationStatus.WITHDRAWN.value),
            (3, RegistrationStatus.WAITLIST.value),
        ):
            self.uow.add_registration(tournament.id, profile_id, status)
            with self.assertRaises(InvalidTransition):
                await self.engine.check_in(tournament.id, Actor(profile_id=profile_id))

    async def test_drop_marks_registration_and_stat(self) -> None:
        tournament = self.uow.add_tournament(status=TournamentStatus.ACTIVE.value)
        self.uow.add_registration(tournament.id, 8, RegistrationStatus.CHECKED_IN.value)

        await self.engine.drop(tournament.id, 8, Actor(profile_id=8))

        registration = await self.uow.registrations.get(tournament.id, 8)
        stat = await self.uow.player_stats.get(tournament.id, 8)
        self.assertEqual(registration.status, RegistrationStatus.DROPPED.value)
        self.assertTrue(stat.is_dropped)
        self.assertEqual(stat.match_points, 0)
        self.assertEqual(self.authorization.calls[-1][1], Action.TOURNAMENT_DROP)
        self.assertEqual(self.sink.types(), ["player_dropped"])

    async def test_dropping_someone_else_needs_manage_permission(self) -> None:
        tournament = self.uow.add_tournament(status=TournamentStatus.ACTIVE.value)
        self.uow.add_registration(tournament.id, 8, RegistrationStatus.CHECKED_IN.value)

        await self.engine.drop(tournament.id, 8, Actor(profile_id=1, is_staff=True))

        self.assertEqual(self.authorization.calls[-1][1], Action.TOURNAMENT_MANAGE)

    async def test_drop_only_while_running(self) -> None:
        tournament = self.uow.add_tournament()
        self.uow.add_registration(tournament.id, 8, RegistrationStatus.CHECKED_IN.value)

        with self.assertRaises(InvalidTransition):
            await self.engine.drop(tournament.id, 8, Actor(profile_id=8))

    async def test_registration_stats(self) -> None:
        tournament = self.uow.add_tournament()
        self.uow.add_registration(tournament.id, 1, RegistrationStatus.PENDING.value)
        self.uow.add_registration(tournament.id, 2, RegistrationStatus.CHECKED_IN.value)
        self.uow.add_registration(tournament.id, 3, RegistrationStatus.CHECKED_IN.value).team_id = 40
        self.uow.add_registration(tournament.id, 4, RegistrationStatus.WITHDRAWN.value)

        stats = await self.engine.get_registration_stats(tournament.id)

        self.assertEqual(stats, {"total": 4, "pending": 1, "checkedIn": 2, "withdrawn": 1, "withTeams": 1})
