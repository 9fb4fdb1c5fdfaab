"""Sign-up, activation, login, federated callback and password reset."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.config import bcrypt_cost, get_settings
from app.database import get_db
from app.dependencies import get_current_user
from app.exceptions import NotFoundError, ValidationError
from app.models.user import User
from app.schemas.auth import (
    UserCreate,
    UserLogin,
    UserResponse,
    Token,
    ResendActivationRequest,
    PasswordResetRequest,
    PasswordResetConfirm,
    MessageResponse,
)
from app.schemas.omniauth import AuthPayload
from app.services import accounts
from app.services.auth import create_access_token
from app.services.notifications import (
    activation_url,
    password_reset_url,
    send_activation_email,
    send_password_reset_email,
)

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/auth", tags=["auth"])

INVALID_ACTIVATION_LINK = "Invalid activation link."
INVALID_RESET_LINK = "Password reset link is invalid or has expired."


def _user_to_response(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


def _token_for(user: User) -> Token:
    token = create_access_token(user.id, user.email, user.provider)
    return Token(access_token=token, user=_user_to_response(user))


def _validation_exception(e: ValidationError) -> HTTPException:
    return HTTPException(status_code=422, detail={"field": e.field, "rule": e.rule, "message": e.message})


@router.post("/register", response_model=UserResponse, status_code=201)
def register(data: UserCreate, db: Session = Depends(get_db)):
    settings = get_settings()
    try:
        user = accounts.register_user(
            db,
            name=data.name,
            email=data.email,
            password=data.password,
            password_confirmation=data.password_confirmation,
            accepted_terms=data.accepted_terms,
            cost=bcrypt_cost(settings),
            terms_required=settings.terms_enabled,
            home_room_name=settings.home_room_name,
        )
    except ValidationError as e:
        raise _validation_exception(e)
    if not send_activation_email(user, activation_url(settings.app_base_url, user)):
        logger.warning("Activation email not delivered for user id=%s", user.id)
    return _user_to_response(user)


@router.get("/activate", response_model=Token)
def activate(email: str, token: str, db: Session = Depends(get_db)):
    settings = get_settings()
    try:
        user = accounts.get_local_user_by_email(db, email)
    except NotFoundError:
        raise HTTPException(status_code=400, detail=INVALID_ACTIVATION_LINK)
    if user.email_verified:
        raise HTTPException(status_code=400, detail="This account has already been activated.")
    if not user.authenticated("activation", token):
        raise HTTPException(status_code=400, detail=INVALID_ACTIVATION_LINK)
    accounts.activate(db, user, home_room_name=settings.home_room_name)
    return _token_for(user)


@router.post("/resend-activation", response_model=MessageResponse)
def resend_activation(data: ResendActivationRequest, db: Session = Depends(get_db)):
    settings = get_settings()
    try:
        user = accounts.get_local_user_by_email(db, data.email)
    except NotFoundError:
        user = None
    if user is not None and not user.email_verified:
        accounts.reissue_activation_digest(db, user, cost=bcrypt_cost(settings))
        send_activation_email(user, activation_url(settings.app_base_url, user))
    return MessageResponse(message="If the account exists and is not active, a new activation email was sent.")


@router.post("/login", response_model=Token)
def login(data: UserLogin, db: Session = Depends(get_db)):
    try:
        user = accounts.get_local_user_by_email(db, data.email)
    except NotFoundError:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.authenticate(data.password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.email_verified:
        raise HTTPException(status_code=403, detail="Verify your email address before signing in.")
    return _token_for(user)


@router.post("/omniauth/callback", response_model=Token)
def omniauth_callback(data: AuthPayload, db: Session = Depends(get_db)):
    settings = get_settings()
    try:
        user = accounts.from_omniauth(
            db,
            data,
            loadbalancer_provider=settings.loadbalancer_provider,
            cost=bcrypt_cost(settings),
            home_room_name=settings.home_room_name,
        )
    except ValidationError as e:
        db.rollback()
        raise _validation_exception(e)
    return _token_for(user)


@router.post("/password-resets", response_model=MessageResponse)
def request_password_reset(data: PasswordResetRequest, db: Session = Depends(get_db)):
    settings = get_settings()
    try:
        user = accounts.get_local_user_by_email(db, data.email)
    except NotFoundError:
        user = None
    if user is not None:
        accounts.create_reset_digest(db, user, cost=bcrypt_cost(settings))
        if not send_password_reset_email(user, password_reset_url(settings.app_base_url, user)):
            logger.warning("Password reset email not delivered for user id=%s", user.id)
    # Same answer either way so the endpoint can't be used to probe for accounts
    return MessageResponse(message="If an account exists for that email, a reset link was sent.")


@router.post("/password-resets/confirm", response_model=MessageResponse)
def confirm_password_reset(data: PasswordResetConfirm, db: Session = Depends(get_db)):
    settings = get_settings()
    try:
        user = accounts.get_local_user_by_email(db, data.email)
    except NotFoundError:
        raise HTTPException(status_code=400, detail=INVALID_RESET_LINK)
    if not user.authenticated("reset", data.token):
        raise HTTPException(status_code=400, detail=INVALID_RESET_LINK)
    if user.password_reset_expired(expire_hours=settings.password_reset_expire_hours):
        raise HTTPException(status_code=400, detail=INVALID_RESET_LINK)
    try:
        accounts.reset_password(db, user, data.password, data.password_confirmation, cost=bcrypt_cost(settings))
    except ValidationError as e:
        raise _validation_exception(e)
    return MessageResponse(message="Password has been reset.")


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return _user_to_response(current_user)


@router.delete("/me", status_code=204)
def delete_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    accounts.destroy_user(db, current_user)
    return Response(status_code=204)
