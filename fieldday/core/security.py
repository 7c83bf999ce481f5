from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ("email", "role")

def create_jwt(payload: dict, secret: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    data = payload.copy()
    data.update({"iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())})
    return jwt.encode(data, secret, algorithm=ALGORITHM)

def decode_jwt(token: str, secret: str) -> dict:
    return jwt.decode(token, secret, algorithms=[ALGORITHM])

def decode_admin_claims(token: str, secret: str) -> dict:
    """Decode an admin bearer token; tokens without email and role are rejected."""
    claims = decode_jwt(token, secret)
    missing = [name for name in REQUIRED_CLAIMS if not str(claims.get(name) or "").strip()]
    if missing:
        raise JWTError(f"Token is missing claims: {', '.join(missing)}")
    claims["role"] = str(claims["role"]).strip().upper()
    return claims
