"""Тела запросов и ответов HTTP API турнира."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    # Ответы отдаются в camelCase, внутри движка поля в snake_case.
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class RegistrationRequest(ApiModel):
    team_name: str | None = Field(default=None, alias="teamName")
    notes: str | None = None


class RegistrationOut(ApiModel):
    id: int
    tournament_id: int = Field(serialization_alias="tournamentId")
    profile_id: int = Field(serialization_alias="profileId")
    status: str
    team_name: str | None = Field(default=None, serialization_alias="teamName")
    notes: str | None = None
    registered_at: datetime | None = Field(default=None, serialization_alias="registeredAt")
    checked_in_at: datetime | None = Field(default=None, serialization_alias="checkedInAt")


class RegistrationStatsOut(ApiModel):
    total: int
    pending: int
    checked_in: int = Field(alias="checkedIn")
    withdrawn: int
    with_teams: int = Field(alias="withTeams")


class StatusChangeRequest(ApiModel):
    status: str


class StatusChangeOut(ApiModel):
    ok: bool = True
    status: str


class PairingsRequest(ApiModel):
    round_number: int | None = Field(default=None, alias="roundNumber")


class GeneratedRoundOut(ApiModel):
    round_id: int = Field(serialization_alias="roundId")
    match_count: int = Field(serialization_alias="matchCount")


class RoundOut(ApiModel):
    id: int
    round_number: int = Field(serialization_alias="roundNumber")
    status: str
    started_at: datetime | None = Field(default=None, serialization_alias="startedAt")


class MatchResultRequest(ApiModel):
    game_wins1: int = Field(alias="gameWins1")
    game_wins2: int = Field(alias="gameWins2")
    winner_profile_id: int | None = Field(default=None, alias="winnerProfileId")
    staff_override: bool = Field(default=False, alias="staffOverride")


class MatchOut(ApiModel):
    id: int
    round_id: int = Field(serialization_alias="roundId")
    table_number: int = Field(serialization_alias="tableNumber")
    profile1_id: int | None = Field(serialization_alias="profile1Id")
    profile2_id: int | None = Field(serialization_alias="profile2Id")
    winner_profile_id: int | None = Field(serialization_alias="winnerProfileId")
    is_bye: bool = Field(serialization_alias="isBye")
    status: str
    game_wins1: int = Field(serialization_alias="gameWins1")
    game_wins2: int = Field(serialization_alias="gameWins2")
    match_points1: int = Field(serialization_alias="matchPoints1")
    match_points2: int = Field(serialization_alias="matchPoints2")


class StandingOut(ApiModel):
    profile_id: int = Field(serialization_alias="profileId")
    current_standing: int | None = Field(default=None, serialization_alias="rank")
    match_points: int = Field(serialization_alias="matchPoints")
    matches_played: int = Field(serialization_alias="matchesPlayed")
    match_wins: int = Field(serialization_alias="matchWins")
    match_losses: int = Field(serialization_alias="matchLosses")
    match_draws: int = Field(serialization_alias="matchDraws")
    game_wins: int = Field(serialization_alias="gameWins")
    game_losses: int = Field(serialization_alias="gameLosses")
    match_win_percentage: float = Field(serialization_alias="matchWinPercentage")
    game_win_percentage: float = Field(serialization_alias="gameWinPercentage")
    opponent_match_win_percentage: float = Field(serialization_alias="opponentMatchWinPercentage")
    opponent_game_win_percentage: float = Field(serialization_alias="opponentGameWinPercentage")
    buchholz: int
    modified_buchholz: int = Field(serialization_alias="modifiedBuchholz")
    has_received_bye: bool = Field(serialization_alias="hasReceivedBye")
    is_dropped: bool = Field(serialization_alias="isDropped")
