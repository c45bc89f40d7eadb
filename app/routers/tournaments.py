"""HTTP-маршруты турнира поверх TournamentEngine."""

from fastapi import APIRouter, Depends, Header, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ValidationError
from app.core.staff_session import STAFF_SESSION_COOKIE, read_staff_session
from app.db.session import SessionLocal, get_db
from app.schemas.tournament import (
    GeneratedRoundOut,
    MatchOut,
    MatchResultRequest,
    PairingsRequest,
    RegistrationOut,
    RegistrationRequest,
    RegistrationStatsOut,
    RoundOut,
    StandingOut,
    StatusChangeOut,
    StatusChangeRequest,
)
from app.services.audit import SqlEventSink
from app.services.engine import TournamentEngine
from app.services.permissions import RoleAuthorization
from app.services.ports import Actor
from app.services.repositories import SqlUnitOfWork
from app.services.results import MatchResult

router = APIRouter()


def get_actor(request: Request, x_profile_id: str | None = Header(default=None)) -> Actor | None:
    # Сотрудник определяется по подписанной cookie, игрок по заголовку X-Profile-Id.
    staff_profile_id = read_staff_session(request.cookies.get(STAFF_SESSION_COOKIE))
    if staff_profile_id is not None:
        return Actor(profile_id=staff_profile_id, is_staff=True)
    if not x_profile_id:
        return None
    try:
        return Actor(profile_id=int(x_profile_id))
    except ValueError as exc:
        raise ValidationError("X-Profile-Id must be an integer") from exc


async def get_engine(db: AsyncSession = Depends(get_db)) -> TournamentEngine:
    return TournamentEngine(SqlUnitOfWork(db), RoleAuthorization(), SqlEventSink(SessionLocal), settings=settings)


@router.post("/tournaments/{tournament_id}/registrations", response_model=RegistrationOut, status_code=201)
async def register(
    tournament_id: int,
    payload: RegistrationRequest,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    """Регистрирует текущего игрока на турнир."""
    return await engine.register(tournament_id, actor, team_name=payload.team_name, notes=payload.notes)


@router.delete("/tournaments/{tournament_id}/registrations/me", status_code=204)
async def withdraw(
    tournament_id: int,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    await engine.withdraw(tournament_id, actor)
    return Response(status_code=204)


@router.get("/tournaments/{tournament_id}/registrations/stats", response_model=RegistrationStatsOut)
async def registration_stats(tournament_id: int, engine: TournamentEngine = Depends(get_engine)):
    return await engine.get_registration_stats(tournament_id)


@router.post("/tournaments/{tournament_id}/check-in", response_model=RegistrationOut)
async def check_in(
    tournament_id: int,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    return await engine.check_in(tournament_id, actor)


@router.delete("/tournaments/{tournament_id}/check-in", response_model=RegistrationOut)
async def undo_check_in(
    tournament_id: int,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    return await engine.undo_check_in(tournament_id, actor)


@router.post("/tournaments/{tournament_id}/players/{profile_id}/drop", response_model=RegistrationOut)
async def drop_player(
    tournament_id: int,
    profile_id: int,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    """Снимает игрока с идущего турнира; он больше не попадает в пары."""
    return await engine.drop(tournament_id, profile_id, actor)


@router.post("/tournaments/{tournament_id}/status", response_model=StatusChangeOut)
async def change_status(
    tournament_id: int,
    payload: StatusChangeRequest,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    status = await engine.change_tournament_status(tournament_id, payload.status, actor)
    return StatusChangeOut(status=status)


@router.post("/tournaments/{tournament_id}/pairings", response_model=GeneratedRoundOut, status_code=201)
async def generate_pairings(
    tournament_id: int,
    payload: PairingsRequest | None = None,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    """Создает следующий раунд (или раунд с номером roundNumber) и пары для всех отметившихся игроков."""
    round_number = payload.round_number if payload is not None else None
    generated = await engine.generate_pairings(tournament_id, actor, round_number=round_number)
    return GeneratedRoundOut(round_id=generated.round_id, match_count=generated.match_count)


@router.get("/tournaments/{tournament_id}/standings", response_model=list[StandingOut])
async def standings(tournament_id: int, engine: TournamentEngine = Depends(get_engine)):
    return await engine.get_standings(tournament_id)


@router.post("/rounds/{round_id}/start", response_model=RoundOut)
async def start_round(
    round_id: int,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    return await engine.start_round(round_id, actor)


@router.post("/matches/{match_id}/result", response_model=MatchOut)
async def record_match_result(
    match_id: int,
    payload: MatchResultRequest,
    actor: Actor | None = Depends(get_actor),
    engine: TournamentEngine = Depends(get_engine),
):
    result = MatchResult(
        game_wins1=payload.game_wins1,
        game_wins2=payload.game_wins2,
        winner_profile_id=payload.winner_profile_id,
    )
    return await engine.record_match_result(match_id, result, actor, staff_override=payload.staff_override)
