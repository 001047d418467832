from datetime import datetime
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any, List

from .utils.validators import email_errors, normalize_email, password_errors

VALID_JOB_STATUSES = [
    "", "Applied", "Pending", "First Interview", "Second Interview",
    "Third Interview", "Final Interview", "Offer", "Rejected",
]
RESUME_TYPES = ["general", "technical", "creative", "executive"]


def _check_email(value: str) -> str:
    value = normalize_email(value)
    errors = email_errors(value)
    if errors:
        raise ValueError("; ".join(errors))
    return value


def _check_password(value: str) -> str:
    errors = password_errors(value)
    if errors:
        raise ValueError("; ".join(errors))
    return value


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


def _not_null(value):
    if value is None:
        raise ValueError("must not be null")
    return value


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# Identity Schemas
class Identity(BaseModel):
    """Authenticated caller, decoded from a verified bearer token."""
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ErrorDetail(BaseModel):
    error: str
    message: str
    code: Optional[str] = None


class Message(BaseModel):
    message: str


# User Schemas
class UserBase(BaseModel):
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    location: Optional[str] = None


class UserCreate(UserBase):
    password: str

    _email = validator("email", allow_reuse=True)(_check_email)
    _password = validator("password", allow_reuse=True)(_check_password)
    _names = validator("first_name", "last_name", allow_reuse=True)(_strip_required)
    _optional = validator("phone", "location", allow_reuse=True)(_strip_optional)


class User(UserBase):
    id: int
    profile_picture: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserProfile(User):
    job_count: int = 0
    resume_count: int = 0


class UserUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    profile_picture: Optional[str] = None

    @validator("first_name", "last_name")
    def validate_name(cls, v):
        if v is None:
            raise ValueError("must not be null")
        v = v.strip()
        if len(v) < 2:
            raise ValueError("must be at least 2 characters long")
        return v

    _email = validator("email", allow_reuse=True)(lambda v: v if v is None else _check_email(v))
    _optional = validator("phone", "location", "profile_picture", allow_reuse=True)(_strip_optional)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str

    _password = validator("new_password", allow_reuse=True)(_check_password)


class AccountDelete(BaseModel):
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str

    @validator("email")
    def lowercase_email(cls, v):
        return normalize_email(v)


class AuthResponse(BaseModel):
    message: str
    user: User
    token: str
    token_type: str = "Bearer"
    expires_in: str
    # only set on registration
    password_strength: Optional[Dict[str, Any]] = None


class EmailAvailability(BaseModel):
    email: str
    available: bool
    message: str


class UserActivity(BaseModel):
    total_jobs: int
    total_resumes: int
    recent_jobs: int
    recent_resumes: int


class UserStats(BaseModel):
    user: User
    member_since: Optional[datetime] = None
    days_since_creation: int
    activity: UserActivity


# Job Schemas
class JobBase(BaseModel):
    company: str
    position: str
    status: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    remote: Optional[str] = None
    salary: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    additional_info: Optional[str] = None
    application_url: Optional[str] = None
    priority: str = "medium"
    notes: Optional[str] = None
    applied_at: Optional[datetime] = None
    interview_date: Optional[datetime] = None
    follow_up_date: Optional[datetime] = None
    resume_id: Optional[int] = None


class JobCreate(JobBase):
    _required = validator("company", "position", allow_reuse=True)(_strip_required)
    _optional = validator(
        "location", "job_type", "experience_level", "remote", "salary", "description",
        "requirements", "additional_info", "application_url", "notes",
        allow_reuse=True,
    )(_strip_optional)

    @validator("status")
    def validate_status(cls, v):
        if v and v not in VALID_JOB_STATUSES:
            raise ValueError(f"Invalid status value, expected one of {VALID_JOB_STATUSES[1:]}")
        return v or None


class JobUpdate(BaseModel):
    company: Optional[str] = None
    position: Optional[str] = None
    status: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    remote: Optional[str] = None
    salary: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    additional_info: Optional[str] = None
    application_url: Optional[str] = None
    priority: Optional[str] = None
    notes: Optional[str] = None
    applied_at: Optional[datetime] = None
    interview_date: Optional[datetime] = None
    follow_up_date: Optional[datetime] = None
    resume_id: Optional[int] = None

    @validator("company", "position")
    def validate_required_text(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return _strip_required(v)

    _priority = validator("priority", allow_reuse=True)(_not_null)

    @validator("status")
    def validate_status(cls, v):
        if v and v not in VALID_JOB_STATUSES:
            raise ValueError(f"Invalid status value, expected one of {VALID_JOB_STATUSES[1:]}")
        return v or None


class ResumeSummary(BaseModel):
    id: int
    title: str
    original_name: str
    resume_type: str
    mime_type: str

    class Config:
        from_attributes = True


class Job(JobBase):
    id: int
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resume: Optional[ResumeSummary] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class JobList(BaseModel):
    jobs: List[Job]
    pagination: Pagination


class JobStats(BaseModel):
    total_jobs: int
    status_breakdown: Dict[str, int]
    success_rate: str
    recent_applications: int


# Resume Schemas
class Resume(BaseModel):
    id: int
    user_id: int
    title: str
    original_name: str
    file_name: str
    file_size: int
    mime_type: str
    resume_type: str
    description: Optional[str] = None
    is_active: bool
    download_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResumeUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    resume_type: Optional[str] = None
    is_active: Optional[bool] = None

    @validator("title")
    def validate_title(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return _strip_required(v)

    _is_active = validator("is_active", allow_reuse=True)(_not_null)

    @validator("resume_type")
    def validate_resume_type(cls, v):
        if v not in RESUME_TYPES:
            raise ValueError(f"resume_type must be one of {RESUME_TYPES}")
        return v


# Match Schemas
class CategoryScore(BaseModel):
    matched: int = 0
    total: int = 0


class MatchBreakdown(BaseModel):
    matched: List[str] = []
    missing: List[str] = []
    categories: Dict[str, CategoryScore] = {}


class MatchResult(BaseModel):
    percentage: int = Field(0, ge=0, le=100)
    breakdown: MatchBreakdown = MatchBreakdown()
    suggestions: List[str] = []
    # True when the resume text was synthesized from metadata instead of read from the file
    is_estimate: bool = False


class JobMatch(BaseModel):
    job_id: int
    resume_id: int
    company: str
    position: str
    match: MatchResult
