import unittest

from app.core.errors import DuplicateRound, InvalidTransition
from app.models.tournament import (
    MatchStatus,
    PhaseStatus,
    RoundStatus,
    TournamentMatch,
    TournamentStatus,
)
from app.services.events import EventRecorder
from app.services.lifecycle import (
    MATCH_TRANSITIONS,
    TOURNAMENT_TRANSITIONS,
    LifecycleStateMachine,
    ensure_transition,
    planned_swiss_rounds,
)
from tests.fakes import FakeUnitOfWork


class TransitionTableTests(unittest.TestCase):
    def test_tournament_transitions(self) -> None:
        ensure_transition(TOURNAMENT_TRANSITIONS, "tournament", "draft", "upcoming")
        ensure_transition(TOURNAMENT_TRANSITIONS, "tournament", "active", "paused")
        ensure_transition(TOURNAMENT_TRANSITIONS, "tournament", "paused", "active")
        ensure_transition(TOURNAMENT_TRANSITIONS, "tournament", "upcoming", "cancelled")

        for current, target in (("active", "upcoming"), ("completed", "active"), ("cancelled", "draft")):
            with self.assertRaises(InvalidTransition):
                ensure_transition(TOURNAMENT_TRANSITIONS, "tournament", current, target)

    def test_completed_match_is_terminal(self) -> None:
        with self.assertRaises(InvalidTransition):
            ensure_transition(MATCH_TRANSITIONS, "match", "completed", "active")

    def test_planned_swiss_rounds(self) -> None:
        self.assertEqual(planned_swiss_rounds(5), 3)
        self.assertEqual(planned_swiss_rounds(8), 3)
        self.assertEqual(planned_swiss_rounds(9), 4)
        self.assertEqual(planned_swiss_rounds(2), 1)


class LifecycleStateMachineTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.uow = FakeUnitOfWork()
        self.events = EventRecorder()
        self.lifecycle = LifecycleStateMachine(self.uow, self.events)

    async def test_phase_created_lazily_once(self) -> None:
        tournament = self.uow.add_tournament()

        phase = await self.lifecycle.ensure_phase(tournament, 5)
        again = await self.lifecycle.ensure_phase(tournament, 9)

        self.assertIs(phase, again)
        self.assertEqual(phase.status, PhaseStatus.ACTIVE.value)
        self.assertEqual(phase.planned_rounds, 3)
        self.assertEqual(phase.match_format, "best_of_3")
        self.assertEqual(tournament.current_phase_id, phase.id)

    async def test_completed_phase_takes_no_new_rounds(self) -> None:
        tournament = self.uow.add_tournament(status=TournamentStatus.ACTIVE.value)
        phase = await self.lifecycle.ensure_phase(tournament, 4)
        phase.status = PhaseStatus.COMPLETED.value

        with self.assertRaises(InvalidTransition):
            await self.lifecycle.ensure_phase(tournament, 4)

        self.assertEqual(await self.uow.rounds.list_rounds(phase.id), [])

    async def test_round_numbers_increase(self) -> None:
        tournament = self.uow.add_tournament()
        phase = await self.lifecycle.ensure_phase(tournament, 4)

        first = await self.lifecycle.create_round(tournament, phase)
        second = await self.lifecycle.create_round(tournament, phase)

        self.assertEqual((first.round_number, second.round_number), (1, 2))
        self.assertEqual(phase.current_round, 2)
        self.assertEqual(tournament.current_round, 2)

    async def test_duplicate_round_number(self) -> None:
        tournament = self.uow.add_tournament()
        phase = await self.lifecycle.ensure_phase(tournament, 4)
        await self.lifecycle.create_round(tournament, phase)

        with self.assertRaises(DuplicateRound):
            await self.lifecycle.create_round(tournament, phase, round_number=1)

    async def test_start_round_activates_regular_matches_only(self) -> None:
        tournament = self.uow.add_tournament()
        phase = await self.lifecycle.ensure_phase(tournament, 3)
        round_ = await self.lifecycle.create_round(tournament, phase)
        regular, bye = await self.uow.matches.add_many(
            [
                TournamentMatch(
                    round_id=round_.id, table_number=1, profile1_id=1, profile2_id=2,
                    is_bye=False, status=MatchStatus.PENDING.value,
                ),
                TournamentMatch(
                    round_id=round_.id, table_number=2, profile1_id=3, profile2_id=None,
                    is_bye=True, status=MatchStatus.COMPLETED.value,
                ),
            ]
        )

        await self.lifecycle.start_round(tournament.id, round_)

        self.assertEqual(round_.status, RoundStatus.ACTIVE.value)
        self.assertIsNotNone(round_.started_at)
        self.assertEqual(regular.status, MatchStatus.ACTIVE.value)
        self.assertEqual(bye.status, MatchStatus.COMPLETED.value)

        with self.assertRaises(InvalidTransition):
            await self.lifecycle.start_round(tournament.id, round_)

    async def test_round_completes_when_last_match_finishes(self) -> None:
        tournament = self.uow.add_tournament(status=TournamentStatus.ACTIVE.value)
        phase = await self.lifecycle.ensure_phase(tournament, 2)
        round_ = await self.lifecycle.create_round(tournament, phase)
        await self.lifecycle.activate_round(tournament.id, round_)
        (match,) = await self.uow.matches.add_many(
            [
                TournamentMatch(
                    round_id=round_.id, table_number=1, profile1_id=1, profile2_id=2,
                    is_bye=False, status=MatchStatus.ACTIVE.value,
                )
            ]
        )

        self.assertFalse(await self.lifecycle.complete_round_if_finished(tournament.id, round_.id))
        match.status = MatchStatus.COMPLETED.value
        self.assertTrue(await self.lifecycle.complete_round_if_finished(tournament.id, round_.id))

        self.assertEqual(round_.status, RoundStatus.COMPLETED.value)
        self.assertIsNotNone(round_.completed_at)
        with self.assertRaises(InvalidTransition):
            await self.lifecycle.start_round(tournament.id, round_)
        self.assertEqual(
            [(event.from_status, event.to_status) for _, event in self.events.pending],
            [("pending", "active"), ("active", "completed")],
        )
