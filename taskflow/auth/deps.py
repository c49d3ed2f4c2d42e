import logging
import uuid

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from taskflow.auth.tokens import decode_access_token
from taskflow.db import get_db
from taskflow.models.profile import Profile

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> Profile:
    if creds is None or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="missing bearer token")

    try:
        payload = decode_access_token(creds.credentials)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        raise HTTPException(status_code=401, detail="invalid token")

    user = db.get(Profile, user_id)
    if user is not None:
        return user

    # first request for this identity: provision the profile
    email = (payload.get("email") or "").lower().strip()
    if not email:
        raise HTTPException(status_code=401, detail="invalid token")

    user = Profile(id=user_id, email=email)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("provisioned profile %s", user_id)
    return user
