"""Авторизация по умолчанию: сотрудники могут все, игроки только действия над собой."""

from app.services.ports import Action, Actor

PLAYER_ACTIONS = frozenset(
    {
        Action.TOURNAMENT_REGISTER,
        Action.TOURNAMENT_CHECK_IN,
        Action.TOURNAMENT_DROP,
        Action.MATCH_REPORT,
    }
)


class RoleAuthorization:
    async def has_permission(self, actor: Actor, action: Action, resource_type: str, resource_id: int) -> bool:
        if actor.is_staff:
            return True
        return action in PLAYER_ACTIONS
