import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.db import job as job_model
from .. import schemas


def get_job(db: Session, job_id: int):
    return db.query(job_model.Job).filter(job_model.Job.id == job_id).first()


def get_jobs_for_user(db: Session, user_id: int):
    return db.query(job_model.Job).filter(
        job_model.Job.user_id == user_id
    ).order_by(job_model.Job.created_at.desc(), job_model.Job.id.desc()).all()


def list_jobs_for_user(db: Session, user_id: int, search: Optional[str] = None,
                       status: Optional[str] = None, page: int = 1, limit: int = 10) -> schemas.JobList:
    query = db.query(job_model.Job).filter(job_model.Job.user_id == user_id)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(job_model.Job.company).like(pattern),
            func.lower(job_model.Job.position).like(pattern),
        ))
    if status:
        query = query.filter(job_model.Job.status == status)

    total = query.count()
    jobs = query.order_by(
        job_model.Job.created_at.desc(), job_model.Job.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return schemas.JobList(
        jobs=[schemas.Job.model_validate(job) for job in jobs],
        pagination=schemas.Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


def create_job_for_user(db: Session, job: schemas.JobCreate, user_id: int):
    job_data = job.model_dump()
    if job_data.get("applied_at") is None:
        job_data["applied_at"] = datetime.utcnow()
    db_job = job_model.Job(**job_data, user_id=user_id)
    db.add(db_job)
    db.commit()
    db.refresh(db_job)
    return db_job


def update_job(db: Session, db_job: job_model.Job, job_update: schemas.JobUpdate):
    update_data = job_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_job, key, value)
    db.commit()
    db.refresh(db_job)
    return db_job


def delete_job(db: Session, db_job: job_model.Job):
    db.delete(db_job)
    db.commit()
    return db_job


def job_stats_for_user(db: Session, user_id: int) -> schemas.JobStats:
    total = db.query(func.count(job_model.Job.id)).filter(job_model.Job.user_id == user_id).scalar()

    rows = db.query(job_model.Job.status, func.count(job_model.Job.id)).filter(
        job_model.Job.user_id == user_id
    ).group_by(job_model.Job.status).all()
    breakdown = {}
    for status, count in rows:
        label = status or "Unspecified"
        breakdown[label] = breakdown.get(label, 0) + count

    offers = breakdown.get("Offer", 0)
    success_rate = f"{offers / total * 100:.1f}%" if total else "0.0%"

    week_ago = datetime.utcnow() - timedelta(days=7)
    recent = db.query(func.count(job_model.Job.id)).filter(
        job_model.Job.user_id == user_id,
        job_model.Job.created_at >= week_ago
    ).scalar()

    return schemas.JobStats(
        total_jobs=total,
        status_breakdown=breakdown,
        success_rate=success_rate,
        recent_applications=recent,
    )
