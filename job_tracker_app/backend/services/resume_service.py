import logging
import os
import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..models.db import resume as resume_model
from ..utils.cv_utils import extract_resume_text
from .. import schemas

logger = logging.getLogger(__name__)


def get_resume(db: Session, resume_id: int):
    return db.query(resume_model.Resume).filter(resume_model.Resume.id == resume_id).first()


def get_resumes_for_user(db: Session, user_id: int):
    return db.query(resume_model.Resume).filter(
        resume_model.Resume.user_id == user_id
    ).order_by(resume_model.Resume.created_at.desc(), resume_model.Resume.id.desc()).all()


def store_resume_file(data: bytes, user_id: int, extension: str) -> str:
    """Write an uploaded file under the upload directory and return its stored name."""
    settings = get_settings()
    os.makedirs(settings.upload_directory, exist_ok=True)
    file_name = f"user_{user_id}_{uuid.uuid4().hex}{extension}"
    with open(settings.upload_path(file_name), "wb") as f:
        f.write(data)
    return file_name


def create_resume_for_user(db: Session, user_id: int, data: bytes, original_name: str,
                           mime_type: str, extension: str, title: Optional[str] = None,
                           description: Optional[str] = None, resume_type: str = "general"):
    file_name = store_resume_file(data, user_id, extension)
    file_path = get_settings().upload_path(file_name)
    content_text = extract_resume_text(data, mime_type)
    if content_text is None:
        logger.info("No text extracted from %s, matching will use fallback content", original_name)

    db_resume = resume_model.Resume(
        user_id=user_id,
        title=(title or "").strip() or original_name,
        original_name=original_name,
        file_name=file_name,
        file_path=file_path,
        file_size=len(data),
        mime_type=mime_type,
        resume_type=resume_type,
        description=description or "",
        content_text=content_text,
    )
    db.add(db_resume)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_resume_files([file_path])
        raise
    db.refresh(db_resume)
    return db_resume


def update_resume(db: Session, db_resume: resume_model.Resume, resume_update: schemas.ResumeUpdate):
    for key, value in resume_update.model_dump(exclude_unset=True).items():
        setattr(db_resume, key, value)
    db.commit()
    db.refresh(db_resume)
    return db_resume


def record_download(db: Session, db_resume: resume_model.Resume):
    db_resume.download_count = (db_resume.download_count or 0) + 1
    db.commit()
    db.refresh(db_resume)
    return db_resume


def remove_resume_files(file_paths):
    """Delete stored files whose records are gone; failures are only logged."""
    for file_path in file_paths:
        if not file_path or not os.path.exists(file_path):
            continue
        try:
            os.remove(file_path)
        except OSError as e:
            logger.error("Failed to remove resume file %s: %s", file_path, e)


def delete_resume(db: Session, db_resume: resume_model.Resume):
    file_path = db_resume.file_path
    db.delete(db_resume)
    db.commit()
    remove_resume_files([file_path])
    return db_resume
