import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from .. import schemas
from ..config.settings import get_settings
from ..models.db.database import get_db
from ..services import job_tracker as job_service
from ..services import resume_service
from ..services.match_scorer import match_resume_to_job
from ..utils.api_helpers import owned_resource
from ..utils.cv_utils import MIME_TYPES_BY_EXTENSION
from .deps import get_current_identity

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=schemas.Resume, status_code=status.HTTP_201_CREATED)
async def upload_resume(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    resume_type: str = Form("general"),
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Upload a resume file (PDF, DOCX or plain text).

    Text is extracted once at upload time and kept for job matching.
    """
    settings = get_settings()
    original_name = os.path.basename(file.filename or "")
    extension = os.path.splitext(original_name)[1].lower()
    if not original_name or extension not in settings.allowed_file_extensions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type. Allowed: {', '.join(settings.allowed_file_extensions)}",
        )
    if resume_type not in schemas.RESUME_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"resume_type must be one of {schemas.RESUME_TYPES}",
        )

    data = await file.read()
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")
    if len(data) > settings.max_file_size:
        raise HTTPException(
            status_code=413,
            detail=f"File too large, maximum size is {settings.max_file_size // (1024 * 1024)} MB",
        )

    db_resume = resume_service.create_resume_for_user(
        db,
        user_id=identity.id,
        data=data,
        original_name=original_name,
        mime_type=MIME_TYPES_BY_EXTENSION[extension],
        extension=extension,
        title=title,
        description=description,
        resume_type=resume_type,
    )
    logger.info("User %s uploaded resume %s", identity.id, db_resume.id)
    return db_resume


@router.get("/", response_model=List[schemas.Resume])
def read_resumes(identity: schemas.Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    return resume_service.get_resumes_for_user(db, user_id=identity.id)


@router.get("/{resume_id}", response_model=schemas.Resume)
def read_resume(
    resume_id: int,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return owned_resource(resume_service.get_resume(db, resume_id), "Resume", identity)


@router.put("/{resume_id}", response_model=schemas.Resume)
def update_resume(
    resume_id: int,
    resume: schemas.ResumeUpdate,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    db_resume = owned_resource(resume_service.get_resume(db, resume_id), "Resume", identity)
    return resume_service.update_resume(db, db_resume, resume)


@router.get("/{resume_id}/download")
def download_resume(
    resume_id: int,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Stream the stored file back under its original name."""
    db_resume = owned_resource(resume_service.get_resume(db, resume_id), "Resume", identity)
    if not db_resume.file_path or not os.path.exists(db_resume.file_path):
        logger.error("Stored file for resume %s is missing: %s", resume_id, db_resume.file_path)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume file not found")

    resume_service.record_download(db, db_resume)
    return FileResponse(
        db_resume.file_path,
        media_type=db_resume.mime_type,
        filename=db_resume.original_name,
    )


@router.delete("/{resume_id}", response_model=schemas.Message)
def delete_resume(
    resume_id: int,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Delete a resume and its stored file. Jobs that referenced it keep their
    data and lose the link.
    """
    db_resume = owned_resource(resume_service.get_resume(db, resume_id), "Resume", identity)
    resume_service.delete_resume(db, db_resume)
    logger.info("User %s deleted resume %s", identity.id, resume_id)
    return {"message": "Resume deleted successfully"}


@router.get("/{resume_id}/matches", response_model=List[schemas.JobMatch])
def match_resume_against_jobs(
    resume_id: int,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Score this resume against every job the caller tracks, best match first.
    """
    db_resume = owned_resource(resume_service.get_resume(db, resume_id), "Resume", identity)
    matches = [
        schemas.JobMatch(
            job_id=job.id,
            resume_id=db_resume.id,
            company=job.company,
            position=job.position,
            match=match_resume_to_job(db_resume, job),
        )
        for job in job_service.get_jobs_for_user(db, user_id=identity.id)
    ]
    matches.sort(key=lambda m: m.match.percentage, reverse=True)
    return matches
