import base64
import hashlib
import hmac
import json

from app.core.config import settings

STAFF_SESSION_COOKIE = "staff_session"


def _b64_encode(value: str) -> str:
    encoded = base64.urlsafe_b64encode(value.encode("utf-8")).decode("utf-8")
    return encoded.rstrip("=")


def _b64_decode(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("utf-8")).decode("utf-8")


def _sign(payload: str) -> str:
    digest = hmac.new(settings.secret_key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


def create_staff_session_cookie(profile_id: int) -> str:
    payload = _b64_encode(json.dumps({"profile_id": profile_id, "is_staff": True}, separators=(",", ":")))
    signature = _sign(payload)
    return f"{payload}.{signature}"


def read_staff_session(cookie_value: str | None) -> int | None:
    # Возвращаем profile_id сотрудника из подписанной cookie или None.
    if not cookie_value or "." not in cookie_value:
        return None

    payload, signature = cookie_value.rsplit(".", 1)
    expected_signature = _sign(payload)
    if not hmac.compare_digest(signature, expected_signature):
        return None

    try:
        data = json.loads(_b64_decode(payload))
    except (ValueError, json.JSONDecodeError):
        return None
    if not data.get("is_staff"):
        return None
    profile_id = data.get("profile_id")
    return profile_id if isinstance(profile_id, int) else None
