import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import (
    CurrentUser,
    authenticate,
    get_current_user,
    hash_password,
    issue_tokens,
    normalize_email,
    refresh_session,
    revoke_session,
)
from ..billing import access_state
from ..db import get_db
from ..errors import ValidationError
from ..models import Profile, User
from ..schemas import (
    LoginData,
    LoginRequest,
    LoginResponse,
    MeData,
    MeResponse,
    ProfileOut,
    RefreshData,
    RefreshRequest,
    RefreshResponse,
    SessionOut,
    SignupRequest,
    SuccessData,
    SuccessResponse,
    UserOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _login_response(user: User, bundle: dict) -> LoginResponse:
    return LoginResponse(data=LoginData(
        user=UserOut.model_validate(user),
        session=SessionOut(**bundle),
        access_token=bundle["access_token"],
        refresh_token=bundle["refresh_token"],
    ))


@router.post("/signup", response_model=LoginResponse, status_code=201)
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    email = normalize_email(body.email)
    if "@" not in email:
        raise ValidationError("A valid email address is required", {"field": "email"})
    if db.query(User).filter(User.email == email).first():
        raise ValidationError("An account with this email already exists", {"field": "email"})

    user = User(email=email, password_hash=hash_password(body.password))
    db.add(user)
    db.flush()
    db.add(Profile(user_id=user.id, email=email))
    db.commit()
    db.refresh(user)
    logger.info(f"New account {user.id}")

    bundle, _ = issue_tokens(db, user)
    return _login_response(user, bundle)


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, body.email, body.password)
    bundle, _ = issue_tokens(db, user)
    return _login_response(user, bundle)


@router.post("/logout", response_model=SuccessResponse)
def logout(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    revoke_session(db, current.session_id)
    return SuccessResponse(data=SuccessData(success=True, message="Logged out successfully"))


@router.post("/refresh", response_model=RefreshResponse)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    bundle, user = refresh_session(db, body.refresh_token)
    return RefreshResponse(data=RefreshData(user=UserOut.model_validate(user), **bundle))


@router.get("/me", response_model=MeResponse)
def me(current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = db.query(Profile).filter(Profile.user_id == current.id).first()
    return MeResponse(data=MeData(
        user=UserOut.model_validate(current.user),
        profile=ProfileOut.model_validate(profile) if profile else None,
        subscription=access_state(db, current.id),
    ))
