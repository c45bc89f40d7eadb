"""Ошибки движка: стабильный машинный kind и человекочитаемое сообщение."""


class TournamentError(Exception):
    kind = "tournament_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str | bool]:
        return {"ok": False, "error": self.kind, "message": self.message}


class NotAuthenticated(TournamentError):
    kind = "not_authenticated"
    status_code = 401


class PermissionDenied(TournamentError):
    kind = "permission_denied"
    status_code = 403


class NotFound(TournamentError):
    kind = "not_found"
    status_code = 404


class InvalidTransition(TournamentError):
    kind = "invalid_transition"
    status_code = 409


class DuplicateRound(TournamentError):
    kind = "duplicate_round"
    status_code = 409


class InsufficientPlayers(TournamentError):
    kind = "insufficient_players"
    status_code = 409


class TournamentFull(TournamentError):
    kind = "tournament_full"
    status_code = 409


class AlreadyRegistered(TournamentError):
    kind = "already_registered"
    status_code = 409


class NotRegistered(TournamentError):
    kind = "not_registered"
    status_code = 404


class TournamentNotOpen(TournamentError):
    kind = "tournament_not_open"
    status_code = 409


class ValidationError(TournamentError):
    kind = "validation_error"
    status_code = 422
