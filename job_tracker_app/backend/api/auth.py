import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import schemas
from ..models.db import crud
from ..models.db.database import get_db
from ..config.settings import get_settings
from ..security import (
    PasswordHashingError,
    TokenSigningError,
    create_access_token,
    get_password_hash,
    verify_password,
)
from ..utils.api_helpers import check_resource_exists, internal_error
from ..utils.validators import email_errors, normalize_email, password_strength
from .deps import AuthRateLimit, get_current_identity

logger = logging.getLogger(__name__)
router = APIRouter()


def invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "Invalid credentials",
            "message": "Invalid email or password",
            "code": "INVALID_CREDENTIALS",
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def email_taken() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail={
            "error": "Email already registered",
            "message": "An account with this email address already exists",
            "code": "EMAIL_TAKEN",
        },
    )


def _expires_in() -> str:
    days = get_settings().access_token_expire_days
    return f"{days} day" if days == 1 else f"{days} days"


@router.post(
    "/register",
    response_model=schemas.AuthResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(AuthRateLimit("register_rate_limit"))],
)
def register(user: schemas.UserCreate, db: Session = Depends(get_db)):
    """
    Create an account and log it in straight away.
    """
    if crud.get_user_by_email(db, email=user.email):
        raise email_taken()

    try:
        hashed_password = get_password_hash(user.password)
    except PasswordHashingError as e:
        raise internal_error(e, "Registration")

    try:
        new_user = crud.create_user(db=db, user=user, hashed_password=hashed_password)
    except IntegrityError:
        # lost a race with a concurrent registration for the same email
        db.rollback()
        raise email_taken()

    try:
        token = create_access_token(new_user)
    except TokenSigningError as e:
        raise internal_error(e, "Registration")

    logger.info("Registered user %s", new_user.id)
    return {
        "message": "Account created successfully",
        "user": new_user,
        "token": token,
        "token_type": "Bearer",
        "expires_in": _expires_in(),
        "password_strength": password_strength(user.password),
    }


@router.post(
    "/login",
    response_model=schemas.AuthResponse,
    dependencies=[Depends(AuthRateLimit("login_rate_limit"))],
)
def login(credentials: schemas.LoginRequest, db: Session = Depends(get_db)):
    """
    Exchange email and password for a bearer token.

    Unknown emails and wrong passwords get the same response.
    """
    user = crud.get_user_by_email(db, email=credentials.email)
    try:
        if not user or not verify_password(credentials.password, user.hashed_password):
            logger.warning("Failed login attempt")
            raise invalid_credentials()
        token = create_access_token(user)
    except (PasswordHashingError, TokenSigningError) as e:
        raise internal_error(e, "Login")

    return {
        "message": "Login successful",
        "user": user,
        "token": token,
        "token_type": "Bearer",
        "expires_in": _expires_in(),
    }


@router.post("/logout", response_model=schemas.Message)
def logout(identity: schemas.Identity = Depends(get_current_identity)):
    """
    Tokens are stateless: the client discards its token, which otherwise stays
    valid until it expires.
    """
    logger.info("User %s logged out", identity.id)
    return {"message": "Logout successful, please discard your token"}


@router.get("/me", response_model=schemas.UserProfile)
def read_me(identity: schemas.Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    db_user = crud.get_user(db, identity.id)
    check_resource_exists(db_user, "User")
    profile = schemas.UserProfile.model_validate(db_user)
    profile.job_count = crud.count_jobs(db, db_user.id)
    profile.resume_count = crud.count_resumes(db, db_user.id)
    return profile


@router.get(
    "/check-email/{email}",
    response_model=schemas.EmailAvailability,
    dependencies=[Depends(AuthRateLimit("check_email_rate_limit"))],
)
def check_email(email: str, db: Session = Depends(get_db)):
    """Tell a registration form whether an email address is still free."""
    email = normalize_email(email)
    errors = email_errors(email)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid email format", "message": "; ".join(errors)},
        )
    available = crud.get_user_by_email(db, email=email) is None
    return {
        "email": email,
        "available": available,
        "message": "Email is available" if available else "Email is already registered",
    }
