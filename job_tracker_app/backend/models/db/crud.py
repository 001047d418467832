from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import user as model
from . import job as job_model
from . import resume as resume_model
from ... import schemas


def get_user(db: Session, user_id: int):
    return db.query(model.User).filter(model.User.id == user_id).first()


def get_user_by_email(db: Session, email: str):
    return db.query(model.User).filter(model.User.email == email.lower()).first()


def email_taken_by_other(db: Session, email: str, user_id: int) -> bool:
    return db.query(model.User.id).filter(
        model.User.email == email.lower(),
        model.User.id != user_id
    ).first() is not None


def create_user(db: Session, user: schemas.UserCreate, hashed_password: str):
    db_user = model.User(
        email=user.email,
        hashed_password=hashed_password,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        location=user.location,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, db_user: model.User, update_data: Dict[str, Any]):
    for key, value in update_data.items():
        setattr(db_user, key, value)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_password(db: Session, db_user: model.User, hashed_password: str):
    db_user.hashed_password = hashed_password
    db.commit()


def delete_user(db: Session, db_user: model.User):
    db.delete(db_user)
    db.commit()


def count_jobs(db: Session, user_id: int, since: Optional[datetime] = None) -> int:
    query = db.query(func.count(job_model.Job.id)).filter(job_model.Job.user_id == user_id)
    if since is not None:
        query = query.filter(job_model.Job.created_at >= since)
    return query.scalar()


def count_resumes(db: Session, user_id: int, since: Optional[datetime] = None) -> int:
    query = db.query(func.count(resume_model.Resume.id)).filter(resume_model.Resume.user_id == user_id)
    if since is not None:
        query = query.filter(resume_model.Resume.created_at >= since)
    return query.scalar()
