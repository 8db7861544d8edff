from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..db import get_db
from ..models import Profile
from ..schemas import ProfileData, ProfileOut, ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_or_create_profile(db: Session, current: CurrentUser) -> Profile:
    p = db.query(Profile).filter(Profile.user_id == current.id).first()
    if not p:
        p = Profile(user_id=current.id, email=current.email)
        db.add(p); db.commit(); db.refresh(p)
    return p


@router.get("", response_model=ProfileResponse)
def get_profile(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    p = get_or_create_profile(db, current)
    return ProfileResponse(data=ProfileData(profile=ProfileOut.model_validate(p)))


@router.patch("", response_model=ProfileResponse)
def update_profile(body: ProfileUpdate, current: CurrentUser = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    p = get_or_create_profile(db, current)
    for k, v in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(p, k, v)
    db.commit(); db.refresh(p)
    return ProfileResponse(data=ProfileData(profile=ProfileOut.model_validate(p)))
