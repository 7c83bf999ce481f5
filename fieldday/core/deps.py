from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError

from fieldday.core.config import settings
from fieldday.core.security import decode_admin_claims

bearer = HTTPBearer(auto_error=False)

ROLE_ADMIN = "ADMIN"
ROLE_CONTRIBUTOR = "CONTRIBUTOR"


def get_current_admin(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Missing authorization token")
    try:
        return decode_admin_claims(creds.credentials, settings.ADMIN_JWT_SECRET)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def require_role(*roles: str):
    def _inner(admin: dict = Depends(get_current_admin)) -> dict:
        if admin.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return admin
    return _inner


def actor_email(admin: dict) -> str:
    return str(admin.get("email") or "").strip() or "System administrator"
