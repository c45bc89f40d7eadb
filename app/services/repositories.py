"""Реализации репозиториев движка поверх AsyncSession."""

from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AlreadyRegistered, DuplicateRound
from app.models.registration import TournamentRegistration
from app.models.tournament import (
    MatchStatus,
    OpponentHistory,
    PlayerStat,
    Tournament,
    TournamentMatch,
    TournamentPhase,
    TournamentRound,
)


class SqlTournamentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tournament_id: int) -> Tournament | None:
        return await self.session.get(Tournament, tournament_id)

    async def get_for_update(self, tournament_id: int) -> Tournament | None:
        # SQLite игнорирует FOR UPDATE, там сериализацию дает сама блокировка записи.
        return await self.session.scalar(
            select(Tournament).where(Tournament.id == tournament_id).with_for_update()
        )

    async def save(self, tournament: Tournament) -> None:
        self.session.add(tournament)
        await self.session.flush()


class SqlRegistrationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, tournament_id: int, profile_id: int) -> TournamentRegistration | None:
        return await self.session.scalar(
            select(TournamentRegistration).where(
                TournamentRegistration.tournament_id == tournament_id,
                TournamentRegistration.profile_id == profile_id,
            )
        )

    async def add(self, registration: TournamentRegistration) -> TournamentRegistration:
        self.session.add(registration)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise AlreadyRegistered("Already registered for this tournament") from exc
        return registration

    async def delete(self, registration: TournamentRegistration) -> None:
        await self.session.delete(registration)
        await self.session.flush()

    async def count(self, tournament_id: int) -> int:
        total = await self.session.scalar(
            select(func.count(TournamentRegistration.id)).where(TournamentRegistration.tournament_id == tournament_id)
        )
        return int(total or 0)

    async def list_for_tournament(self, tournament_id: int, status: str | None = None) -> list[TournamentRegistration]:
        query = select(TournamentRegistration).where(TournamentRegistration.tournament_id == tournament_id)
        if status is not None:
            query = query.where(TournamentRegistration.status == status)
        rows = await self.session.scalars(
            query.order_by(TournamentRegistration.registered_at, TournamentRegistration.id)
        )
        return list(rows.all())

    async def save(self, registration: TournamentRegistration) -> None:
        self.session.add(registration)
        await self.session.flush()


class SqlRoundRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_phase(self, phase_id: int) -> TournamentPhase | None:
        return await self.session.get(TournamentPhase, phase_id)

    async def first_phase(self, tournament_id: int) -> TournamentPhase | None:
        return await self.session.scalar(
            select(TournamentPhase)
            .where(TournamentPhase.tournament_id == tournament_id)
            .order_by(TournamentPhase.phase_order)
            .limit(1)
        )

    async def add_phase(self, phase: TournamentPhase) -> TournamentPhase:
        self.session.add(phase)
        await self.session.flush()
        return phase

    async def get_round(self, round_id: int) -> TournamentRound | None:
        return await self.session.get(TournamentRound, round_id)

    async def list_rounds(self, phase_id: int) -> list[TournamentRound]:
        rows = await self.session.scalars(
            select(TournamentRound).where(TournamentRound.phase_id == phase_id).order_by(TournamentRound.round_number)
        )
        return list(rows.all())

    async def add_round(self, round_: TournamentRound) -> TournamentRound:
        self.session.add(round_)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRound(f"Round {round_.round_number} already exists") from exc
        return round_

    async def save(self, entity: Any) -> None:
        self.session.add(entity)
        await self.session.flush()


class SqlMatchRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, match_id: int) -> TournamentMatch | None:
        return await self.session.get(TournamentMatch, match_id)

    async def add_many(self, matches: list[TournamentMatch]) -> list[TournamentMatch]:
        self.session.add_all(matches)
        await self.session.flush()
        return matches

    async def list_for_round(self, round_id: int) -> list[TournamentMatch]:
        rows = await self.session.scalars(
            select(TournamentMatch).where(TournamentMatch.round_id == round_id).order_by(TournamentMatch.table_number)
        )
        return list(rows.all())

    async def list_for_tournament(self, tournament_id: int, status: str | None = None) -> list[TournamentMatch]:
        query = (
            select(TournamentMatch)
            .join(TournamentRound, TournamentRound.id == TournamentMatch.round_id)
            .join(TournamentPhase, TournamentPhase.id == TournamentRound.phase_id)
            .where(TournamentPhase.tournament_id == tournament_id)
        )
        if status is not None:
            query = query.where(TournamentMatch.status == status)
        rows = await self.session.scalars(
            query.order_by(TournamentPhase.phase_order, TournamentRound.round_number, TournamentMatch.table_number)
        )
        return list(rows.all())

    async def complete(self, match: TournamentMatch, values: dict[str, Any]) -> bool:
        # Условный UPDATE: из двух одновременных отправок строку обновит только одна.
        result = await self.session.execute(
            update(TournamentMatch)
            .where(
                TournamentMatch.id == match.id,
                TournamentMatch.status.in_([MatchStatus.PENDING.value, MatchStatus.ACTIVE.value]),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self.session.refresh(match)
        return True

    async def save(self, match: TournamentMatch) -> None:
        self.session.add(match)
        await self.session.flush()


class SqlPlayerStatRepo:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_for_tournament(self, tournament_id: int) -> list[PlayerStat]:
        rows = await self.session.scalars(
            select(PlayerStat).where(PlayerStat.tournament_id == tournament_id).order_by(PlayerStat.profile_id)
        )
        return list(rows.all())

    async def get(self, tournament_id: int, profile_id: int) -> PlayerStat | None:
        return await self.session.scalar(
            select(PlayerStat).where(PlayerStat.tournament_id == tournament_id, PlayerStat.profile_id == profile_id)
        )

    async def add(self, stat: PlayerStat) -> PlayerStat:
        self.session.add(stat)
        await self.session.flush()
        return stat

    async def save(self, stat: PlayerStat) -> None:
        self.session.add(stat)
        await self.session.flush()

    async def add_history(self, entries: list[OpponentHistory]) -> None:
        self.session.add_all(entries)
        await self.session.flush()

    async def list_history(self, tournament_id: int) -> list[OpponentHistory]:
        rows = await self.session.scalars(
            select(OpponentHistory)
            .where(OpponentHistory.tournament_id == tournament_id)
            .order_by(OpponentHistory.round_number, OpponentHistory.id)
        )
        return list(rows.all())


class SqlUnitOfWork:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.tournaments = SqlTournamentRepo(session)
        self.registrations = SqlRegistrationRepo(session)
        self.rounds = SqlRoundRepo(session)
        self.matches = SqlMatchRepo(session)
        self.player_stats = SqlPlayerStatRepo(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
