from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskflow.auth.deps import get_current_user
from taskflow.db import get_db
from taskflow.models.profile import Profile
from taskflow.schemas.profile import ProfileOut, ProfileUpdateIn

router = APIRouter(prefix="/me", tags=["profile"])

def _profile_out(p: Profile) -> ProfileOut:
    return ProfileOut(
        id=p.id,
        email=p.email,
        full_name=p.full_name,
        avatar_url=p.avatar_url,
        timezone=p.timezone,
    )

@router.get("", response_model=ProfileOut)
def get_me(user: Profile = Depends(get_current_user)) -> ProfileOut:
    return _profile_out(user)

@router.patch("", response_model=ProfileOut)
def update_me(
    payload: ProfileUpdateIn,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileOut:
    for field in payload.model_fields_set:
        value = getattr(payload, field)
        if field == "timezone" and value is None:
            continue
        setattr(user, field, value)

    db.add(user)
    db.commit()
    db.refresh(user)
    return _profile_out(user)
