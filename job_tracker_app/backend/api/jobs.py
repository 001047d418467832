import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..models.db.database import get_db
from ..services import job_tracker as job_service
from ..services import resume_service
from ..services.match_scorer import match_resume_to_job
from ..utils.api_helpers import owned_resource
from .deps import get_current_identity

logger = logging.getLogger(__name__)
router = APIRouter()


def _check_resume_reference(db: Session, resume_id: Optional[int], identity: schemas.Identity) -> None:
    """A job may only point at one of the caller's own resumes."""
    if resume_id is None:
        return
    resume = resume_service.get_resume(db, resume_id)
    if resume is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Referenced resume does not exist")
    owned_resource(resume, "Resume", identity)


@router.get("/", response_model=schemas.JobList)
def read_jobs(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Retrieve the current user's jobs, newest first.

    ``search`` matches company or position case-insensitively and ``status``
    filters on an exact status value.
    """
    return job_service.list_jobs_for_user(
        db, user_id=identity.id, search=search, status=status_filter, page=page, limit=limit
    )


@router.post("/", response_model=schemas.Job, status_code=status.HTTP_201_CREATED)
def create_job(
    job: schemas.JobCreate,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Create a new job entry for the current user.
    """
    _check_resume_reference(db, job.resume_id, identity)
    db_job = job_service.create_job_for_user(db=db, job=job, user_id=identity.id)
    logger.info("User %s added job %s", identity.id, db_job.id)
    return db_job


@router.get("/stats", response_model=schemas.JobStats)
def read_job_stats(identity: schemas.Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    return job_service.job_stats_for_user(db, user_id=identity.id)


@router.get("/{job_id}", response_model=schemas.Job)
def read_job(
    job_id: int,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    return owned_resource(job_service.get_job(db, job_id), "Job", identity)


@router.put("/{job_id}", response_model=schemas.Job)
def update_job(
    job_id: int,
    job: schemas.JobUpdate,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Update a job's details. Only the fields sent are changed.
    """
    db_job = owned_resource(job_service.get_job(db, job_id), "Job", identity)
    _check_resume_reference(db, job.resume_id, identity)
    return job_service.update_job(db, db_job, job)


@router.delete("/{job_id}", response_model=schemas.Message)
def delete_job(
    job_id: int,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    db_job = owned_resource(job_service.get_job(db, job_id), "Job", identity)
    job_service.delete_job(db, db_job)
    logger.info("User %s deleted job %s", identity.id, job_id)
    return {"message": "Job deleted successfully"}


@router.get("/{job_id}/match", response_model=schemas.JobMatch)
def match_job(
    job_id: int,
    resume_id: Optional[int] = None,
    identity: schemas.Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """
    Score one of the caller's resumes against this job's posting text.

    Without ``resume_id`` the resume linked to the job is used.
    """
    db_job = owned_resource(job_service.get_job(db, job_id), "Job", identity)
    if resume_id is None:
        resume_id = db_job.resume_id
    if resume_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No resume given and none is linked to this job",
        )
    db_resume = owned_resource(resume_service.get_resume(db, resume_id), "Resume", identity)
    return schemas.JobMatch(
        job_id=db_job.id,
        resume_id=db_resume.id,
        company=db_job.company,
        position=db_job.position,
        match=match_resume_to_job(db_resume, db_job),
    )
