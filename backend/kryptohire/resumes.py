"""
Resume and job persistence helpers shared by the resume, optimize and
cover letter routes. Every lookup is filtered by owner.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from .errors import NotFoundError, ValidationError
from .models import Job, Profile, Resume
from .schemas import ResumeContent, ResumeCreate, SelectedContent

logger = logging.getLogger(__name__)

CONTACT_FIELDS = (
    "first_name", "last_name", "email", "phone_number",
    "location", "website", "linkedin_url", "github_url",
)
SECTION_FIELDS = ("work_experience", "education", "skills", "projects")
LAYOUT_FIELDS = ("section_order", "section_configs", "document_settings")

DEFAULT_SECTION_ORDER = ["work_experience", "education", "skills", "projects"]

DEFAULT_DOCUMENT_SETTINGS = {
    "footer_width": 0,
    "show_ubc_footer": False,
    "header_name_size": 24,
    "skills_margin_top": 0,
    "document_font_size": 10,
    "projects_margin_top": 0,
    "skills_item_spacing": 0,
    "document_line_height": 1.2,
    "education_margin_top": 0,
    "skills_margin_bottom": 2,
    "experience_margin_top": 2,
    "projects_item_spacing": 0,
    "education_item_spacing": 0,
    "projects_margin_bottom": 0,
    "education_margin_bottom": 0,
    "experience_item_spacing": 1,
    "document_margin_vertical": 20,
    "experience_margin_bottom": 0,
    "skills_margin_horizontal": 0,
    "document_margin_horizontal": 28,
    "header_name_bottom_spacing": 16,
    "projects_margin_horizontal": 0,
    "education_margin_horizontal": 0,
    "experience_margin_horizontal": 0,
}


def get_owned_resume(db: Session, resume_id: Any, user_id: str) -> Resume:
    resume = (
        db.query(Resume)
        .filter(Resume.id == str(resume_id), Resume.user_id == user_id)
        .first()
    )
    if not resume:
        raise NotFoundError("Resume not found")
    return resume


def get_owned_job(db: Session, job_id: Any, user_id: str) -> Job:
    job = db.query(Job).filter(Job.id == str(job_id), Job.user_id == user_id).first()
    if not job:
        raise NotFoundError("Job not found")
    return job


def get_base_resume(db: Session, resume_id: Any, user_id: str) -> Resume:
    resume = get_owned_resume(db, resume_id, user_id)
    if not resume.is_base_resume:
        raise ValidationError("Source resume must be a base resume", {"resume_id": str(resume_id)})
    return resume


def resume_to_dict(resume: Resume) -> Dict[str, Any]:
    data = {
        "id": resume.id,
        "name": resume.name,
        "target_role": resume.target_role,
        "is_base_resume": bool(resume.is_base_resume),
        "professional_summary": resume.professional_summary,
    }
    for f in CONTACT_FIELDS:
        data[f] = getattr(resume, f)
    for f in SECTION_FIELDS:
        data[f] = getattr(resume, f) or []
    return data


def job_to_dict(job: Job) -> Dict[str, Any]:
    return {
        "id": job.id,
        "company_name": job.company_name,
        "position_title": job.position_title,
        "job_url": job.job_url,
        "description": job.description,
        "location": job.location,
        "salary_range": job.salary_range,
        "keywords": job.keywords or [],
        "requirements": job.requirements or [],
        "responsibilities": job.responsibilities or [],
        "work_location": job.work_location,
        "employment_type": job.employment_type,
    }


def create_base_resume(db: Session, user_id: str, body: ResumeCreate) -> Resume:
    option = body.importOption
    selected = body.selectedContent
    profile = None
    if option != "fresh":
        profile = db.query(Profile).filter(Profile.user_id == user_id).first()

    contact = {}
    for f in CONTACT_FIELDS:
        if option == "import-resume":
            contact[f] = (getattr(selected, f) if selected else None) or ""
        elif option == "fresh":
            contact[f] = ""
        else:
            contact[f] = (getattr(profile, f) if profile else None) or ""

    sections = {}
    for f in SECTION_FIELDS:
        items = getattr(selected, f) if selected and option != "fresh" else []
        sections[f] = [i.model_dump() for i in items]

    section_configs = {
        f: {"visible": bool(selected and getattr(selected, f))} for f in SECTION_FIELDS
    }

    resume = Resume(
        user_id=user_id,
        name=body.name,
        target_role=body.name,
        is_base_resume=True,
        section_order=list(DEFAULT_SECTION_ORDER),
        section_configs=section_configs,
        document_settings=dict(DEFAULT_DOCUMENT_SETTINGS),
        **contact,
        **sections,
    )
    db.add(resume)
    db.commit()
    db.refresh(resume)
    logger.info(f"Created base resume {resume.id} ({option}) for user {user_id}")
    return resume


def profile_sections(profile: Optional[Profile]) -> Dict[str, Any]:
    return {f: (getattr(profile, f) if profile else None) or [] for f in SECTION_FIELDS}


def create_resume_from_content(db: Session, user_id: str, name: str, content: ResumeContent,
                               target_role: Optional[str] = None) -> Resume:
    """Save model-produced sections as a base resume, with contact details from the profile."""
    body = ResumeCreate(
        name=name,
        importOption="import-profile",
        selectedContent=SelectedContent(**content.model_dump(include=set(SECTION_FIELDS))),
    )
    resume = create_base_resume(db, user_id, body)
    resume.target_role = target_role or content.target_role or resume.target_role
    if content.professional_summary:
        resume.professional_summary = content.professional_summary
    db.commit()
    db.refresh(resume)
    return resume


def apply_content(resume: Resume, content: ResumeContent) -> None:
    """Write model-produced sections onto a resume row."""
    data = content.model_dump()
    resume.target_role = data.get("target_role") or resume.target_role
    if data.get("professional_summary") is not None:
        resume.professional_summary = data["professional_summary"]
    for f in SECTION_FIELDS:
        setattr(resume, f, data.get(f) or [])


def create_tailored_resume(db: Session, base: Resume, job: Job, content: ResumeContent) -> Resume:
    title = f"{job.position_title} at {job.company_name}"
    resume = Resume(
        user_id=base.user_id,
        job_id=job.id,
        is_base_resume=False,
        name=title,
        resume_title=title,
        target_role=base.target_role,
        professional_summary=base.professional_summary,
    )
    for f in CONTACT_FIELDS + LAYOUT_FIELDS:
        setattr(resume, f, getattr(base, f))
    apply_content(resume, content)
    db.add(resume)
    db.commit()
    db.refresh(resume)
    return resume


def copy_resume(db: Session, source: Resume) -> Resume:
    skip = {"id", "created_at", "updated_at"}
    data = {
        c.name: getattr(source, c.name)
        for c in Resume.__table__.columns
        if c.name not in skip
    }
    data["name"] = f"{source.name} (Copy)"
    copy = Resume(**data)
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


def delete_resume(db: Session, resume: Resume) -> Optional[str]:
    """Delete a resume; a tailored resume takes its job with it. Returns the deleted job id."""
    deleted_job = None
    if not resume.is_base_resume and resume.job_id:
        job = (
            db.query(Job)
            .filter(Job.id == resume.job_id, Job.user_id == resume.user_id)
            .first()
        )
        if job:
            db.delete(job)
            deleted_job = job.id
    db.delete(resume)
    db.commit()
    return deleted_job
