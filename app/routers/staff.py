from fastapi import APIRouter, Form
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.staff_session import STAFF_SESSION_COOKIE, create_staff_session_cookie

router = APIRouter(prefix="/staff")

STAFF_SESSION_MAX_AGE = 60 * 60 * 12


@router.post("/login")
async def staff_login(profile_id: int = Form(...), staff_key: str = Form(...)):
    if staff_key != settings.staff_key:
        return JSONResponse(
            {"ok": False, "error": "permission_denied", "message": "Invalid staff key"},
            status_code=403,
        )
    response = JSONResponse({"ok": True, "profileId": profile_id})
    response.set_cookie(
        STAFF_SESSION_COOKIE,
        create_staff_session_cookie(profile_id),
        httponly=True,
        samesite="lax",
        max_age=STAFF_SESSION_MAX_AGE,
    )
    return response


@router.post("/logout")
async def staff_logout():
    response = JSONResponse({"ok": True})
    response.delete_cookie(STAFF_SESSION_COOKIE)
    return response
