import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import schemas
from ..models.db import crud
from ..services import resume_service
from ..models.db.database import get_db
from ..security import PasswordHashingError, get_password_hash, verify_password
from ..utils.api_helpers import check_resource_exists, internal_error
from .deps import RequireOwnership, get_current_identity

logger = logging.getLogger(__name__)
router = APIRouter()


def _load_user(db: Session, identity: schemas.Identity):
    db_user = crud.get_user(db, identity.id)
    check_resource_exists(db_user, "User")
    return db_user


def _user_stats(db: Session, db_user) -> schemas.UserStats:
    thirty_days_ago = datetime.utcnow() - timedelta(days=30)
    days_since_creation = (datetime.utcnow() - db_user.created_at).days if db_user.created_at else 0
    return schemas.UserStats(
        user=schemas.User.model_validate(db_user),
        member_since=db_user.created_at,
        days_since_creation=max(0, days_since_creation),
        activity=schemas.UserActivity(
            total_jobs=crud.count_jobs(db, db_user.id),
            total_resumes=crud.count_resumes(db, db_user.id),
            recent_jobs=crud.count_jobs(db, db_user.id, since=thirty_days_ago),
            recent_resumes=crud.count_resumes(db, db_user.id, since=thirty_days_ago),
        ),
    )


@router.get("/profile", response_model=schemas.User)
def read_profile(identity: schemas.Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    return _load_user(db, identity)


@router.put("/profile", response_model=schemas.User)
def update_profile(
    profile: schemas.UserUpdate,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Update name, contact details or email. A new email must not belong to
    another account.
    """
    db_user = _load_user(db, identity)
    update_data = profile.model_dump(exclude_unset=True)
    if not update_data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid fields to update")

    if "email" in update_data and update_data["email"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email cannot be empty.")
    if update_data.get("email") and crud.email_taken_by_other(db, update_data["email"], db_user.id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"error": "Email is already taken", "message": "Email is already taken", "code": "EMAIL_TAKEN"},
        )
    return crud.update_user(db, db_user, update_data)


@router.put("/change-password", response_model=schemas.Message)
def change_password(
    passwords: schemas.PasswordChange,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Replace the account password. Tokens issued earlier stay valid until they expire.
    """
    db_user = _load_user(db, identity)
    try:
        if not verify_password(passwords.current_password, db_user.hashed_password):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
        crud.set_password(db, db_user, get_password_hash(passwords.new_password))
    except PasswordHashingError as e:
        raise internal_error(e, "Password change")

    logger.info("User %s changed password", db_user.id)
    return {"message": "Password changed successfully"}


@router.get("/stats", response_model=schemas.UserStats)
def read_my_stats(identity: schemas.Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    return _user_stats(db, _load_user(db, identity))


@router.get("/{user_id}/stats", response_model=schemas.UserStats)
def read_user_stats(
    user_id: int,
    identity: schemas.Identity = Depends(RequireOwnership("user_id")),
    db: Session = Depends(get_db),
):
    """Statistics for the account named in the path, which must be the caller's own."""
    return _user_stats(db, _load_user(db, identity))


@router.delete("/account", response_model=schemas.Message)
def delete_account(
    confirmation: schemas.AccountDelete,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Permanently delete the account with its jobs and resumes. Requires the
    current password.
    """
    db_user = _load_user(db, identity)
    try:
        password_ok = verify_password(confirmation.password, db_user.hashed_password)
    except PasswordHashingError as e:
        raise internal_error(e, "Account deletion")
    if not password_ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect password")

    file_paths = [r.file_path for r in resume_service.get_resumes_for_user(db, db_user.id)]
    crud.delete_user(db, db_user)
    resume_service.remove_resume_files(file_paths)
    logger.info("Deleted account %s", identity.id)
    return {"message": "Account deleted successfully"}
