from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from .database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    company = Column(String, index=True, nullable=False)
    position = Column(String, index=True, nullable=False)
    location = Column(String, nullable=True)
    job_type = Column(String, nullable=True)
    experience_level = Column(String, nullable=True)
    remote = Column(String, nullable=True)
    salary = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    additional_info = Column(Text, nullable=True)
    application_url = Column(String, nullable=True)
    status = Column(String, nullable=True)
    priority = Column(String, default="medium", nullable=False)
    notes = Column(Text, nullable=True)
    applied_at = Column(DateTime, nullable=True)
    interview_date = Column(DateTime, nullable=True)
    follow_up_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    resume_id = Column(Integer, ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True)

    owner = relationship("User", back_populates="jobs")
    resume = relationship("Resume", back_populates="jobs")
