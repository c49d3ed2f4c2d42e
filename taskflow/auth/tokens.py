import uuid
from datetime import datetime, timedelta, timezone

import jwt

from taskflow.config import settings

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

# tokens are normally minted by the identity provider; this is for dev and tests
def issue_access_token(user_id: str | uuid.UUID, email: str) -> str:
    iat = now_utc()
    exp = iat + timedelta(minutes=settings.jwt_expires_minutes)
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.jwt_audience,
        "iat": int(iat.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")

def decode_access_token(token: str) -> dict:
    options = {"require": ["sub", "exp"]}
    if settings.jwt_issuer:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        audience=settings.jwt_audience,
        options=options,
    )
