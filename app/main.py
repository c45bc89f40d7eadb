"""Создаёт FastAPI-приложение, подключает маршруты и обработчик ошибок движка."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import TournamentError
from app.core.logging import configure_logging, setup_logger
from app.routers.staff import router as staff_router
from app.routers.tournaments import router as tournaments_router

configure_logging(settings.log_level)
logger = setup_logger(__name__)

app = FastAPI(title=settings.app_name)


@app.exception_handler(TournamentError)
async def tournament_error_handler(request: Request, exc: TournamentError) -> JSONResponse:
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# Подключаем роуты API.
app.include_router(tournaments_router)
app.include_router(staff_router)
