from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from .db import Base
import uuid
from datetime import datetime, timezone

def uid() -> str:
    return str(uuid.uuid4())

def now() -> datetime:
    return datetime.now(timezone.utc)

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=uid)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now, server_default=func.now())

class AuthSession(Base):
    __tablename__ = "auth_sessions"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, index=True, nullable=False)
    refresh_token_hash = Column(String, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now, server_default=func.now())

class Profile(Base):
    __tablename__ = "profiles"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, default="")
    last_name = Column(String, default="")
    email = Column(String, default="")
    phone_number = Column(String, default="")
    location = Column(String, default="")
    website = Column(String, default="")
    linkedin_url = Column(String, default="")
    github_url = Column(String, default="")
    work_experience = Column(JSON, default=list)
    education = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    projects = Column(JSON, default=list)
    created_at = Column(DateTime(timezone=True), default=now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Resume(Base):
    __tablename__ = "resumes"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, index=True, nullable=False)
    job_id = Column(String, index=True, nullable=True)  # set on tailored resumes only
    name = Column(String, nullable=False)
    resume_title = Column(String, nullable=True)
    target_role = Column(String, default="")
    is_base_resume = Column(Boolean, default=True)
    first_name = Column(String, default="")
    last_name = Column(String, default="")
    email = Column(String, default="")
    phone_number = Column(String, default="")
    location = Column(String, default="")
    website = Column(String, default="")
    linkedin_url = Column(String, default="")
    github_url = Column(String, default="")
    professional_summary = Column(Text, nullable=True)
    work_experience = Column(JSON, default=list)
    education = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    projects = Column(JSON, default=list)
    section_order = Column(JSON, nullable=True)
    section_configs = Column(JSON, nullable=True)
    document_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Job(Base):
    __tablename__ = "jobs"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, index=True, nullable=False)
    company_name = Column(String, default="")
    position_title = Column(String, default="")
    job_url = Column(String, nullable=True)
    description = Column(Text, default="")
    location = Column(String, nullable=True)
    salary_range = Column(String, nullable=True)
    keywords = Column(JSON, default=list)
    requirements = Column(JSON, default=list)
    responsibilities = Column(JSON, default=list)
    work_location = Column(String, nullable=True)  # remote|in_person|hybrid
    employment_type = Column(String, nullable=True)  # full_time|part_time|co_op|internship
    application_deadline = Column(String, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Subscription(Base):
    __tablename__ = "subscriptions"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, unique=True, index=True, nullable=False)
    stripe_customer_id = Column(String, index=True, nullable=True)
    stripe_subscription_id = Column(String, nullable=True)
    subscription_plan = Column(String, default="free")  # free|pro
    subscription_status = Column(String, nullable=True)  # active|trialing|past_due|canceled
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    trial_end = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

# One row per model attempt, successful or not
class AIInteraction(Base):
    __tablename__ = "ai_interactions"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, index=True, nullable=True)
    interaction_type = Column(String)  # tailor|format_job|score|optimize|chat|cover_letter
    model_used = Column(String)
    success = Column(Boolean, default=False)
    error = Column(Text, nullable=True)
    duration_ms = Column(Integer, nullable=True)
    prompt = Column(Text)
    response = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now, server_default=func.now())

class RateLimitEvent(Base):
    __tablename__ = "rate_limit_events"
    id = Column(String, primary_key=True, default=uid)
    user_id = Column(String, index=True, nullable=False)
    action = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
