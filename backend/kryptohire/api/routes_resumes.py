import logging
import math
import re
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ..ai_services import get_ai_service
from ..auth import CurrentUser, get_current_user
from ..billing import get_subscription_plan
from ..db import get_db
from ..errors import ValidationError
from ..models import Job, Profile, Resume
from ..pdf import render_resume_pdf
from ..resumes import (
    copy_resume,
    create_base_resume,
    create_resume_from_content,
    create_tailored_resume,
    delete_resume,
    get_base_resume,
    get_owned_job,
    get_owned_resume,
    job_to_dict,
    profile_sections,
    resume_to_dict,
)
from ..schemas import (
    Pagination,
    ProfileImportRequest,
    ResumeCreate,
    ResumeData,
    ResumeListResponse,
    ResumeOut,
    ResumeResponse,
    ResumeUpdate,
    ScoreRequest,
    ScoreResponse,
    SuccessData,
    SuccessResponse,
    TailorRequest,
    TextImportRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resumes", tags=["resumes"])

MAX_PAGE_SIZE = 100


@router.get("", response_model=ResumeListResponse)
def list_resumes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    type: Literal["base", "tailored", "all"] = "all",
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    limit = min(limit, MAX_PAGE_SIZE)
    q = db.query(Resume).filter(Resume.user_id == current.id)
    if type == "base":
        q = q.filter(Resume.is_base_resume.is_(True))
    elif type == "tailored":
        q = q.filter(Resume.is_base_resume.is_(False))

    total = q.count()
    rows = (
        q.order_by(Resume.created_at.desc(), Resume.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit) if total else 0
    return ResumeListResponse(
        data=[ResumeOut.model_validate(r) for r in rows],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            totalPages=total_pages,
            hasNext=page < total_pages,
            hasPrev=page > 1,
        ),
    )


@router.post("", response_model=ResumeResponse, status_code=201)
def create_resume(body: ResumeCreate, current: CurrentUser = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    resume = create_base_resume(db, current.id, body)
    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(resume)))


@router.post("/tailor", response_model=ResumeResponse, status_code=201)
async def tailor_resume(body: TailorRequest, current: CurrentUser = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    base = get_base_resume(db, body.base_resume_id, current.id)
    job = get_owned_job(db, body.job_id, current.id)

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)

    content = await ai.tailor_resume(resume_to_dict(base), job_to_dict(job))
    resume = create_tailored_resume(db, base, job, content)
    logger.info(f"Tailored resume {resume.id} from base {base.id} for job {job.id}")

    score = None
    if body.generate_score:
        try:
            score = await ai.score_resume(resume_to_dict(resume), job_to_dict(job))
        except Exception as e:
            # the tailored resume is already saved; scoring is best effort
            logger.error(f"Scoring tailored resume {resume.id} failed: {e}")

    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(resume), score=score))


@router.post("/import-text", response_model=ResumeResponse, status_code=201)
async def import_resume_text(body: TextImportRequest, current: CurrentUser = Depends(get_current_user),
                             db: Session = Depends(get_db)):
    """Build a base resume from free text; contact details come from the profile."""
    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)
    content = await ai.import_resume_text(body.text)
    resume = create_resume_from_content(db, current.id, body.name, content)
    logger.info(f"Imported base resume {resume.id} from {len(body.text)} chars of text")
    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(resume)))


@router.post("/select-from-profile", response_model=ResumeResponse, status_code=201)
async def select_from_profile(body: ProfileImportRequest, current: CurrentUser = Depends(get_current_user),
                              db: Session = Depends(get_db)):
    """Build a base resume from the profile items most relevant to a target role."""
    profile = db.query(Profile).filter(Profile.user_id == current.id).first()
    sections = profile_sections(profile)
    if not any(sections.values()):
        raise ValidationError("Profile has no content to select from")

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)
    content = await ai.select_profile_content(sections, body.target_role)
    resume = create_resume_from_content(db, current.id, body.name, content, target_role=body.target_role)
    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(resume)))


@router.get("/{resume_id}", response_model=ResumeResponse)
def get_resume(resume_id: str, current: CurrentUser = Depends(get_current_user),
               db: Session = Depends(get_db)):
    resume = get_owned_resume(db, resume_id, current.id)
    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(resume)))


@router.patch("/{resume_id}", response_model=ResumeResponse)
def update_resume(resume_id: str, body: ResumeUpdate, current: CurrentUser = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    resume = get_owned_resume(db, resume_id, current.id)
    for k, v in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(resume, k, v)
    db.commit(); db.refresh(resume)
    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(resume)))


@router.delete("/{resume_id}", response_model=SuccessResponse)
def remove_resume(resume_id: str, current: CurrentUser = Depends(get_current_user),
                  db: Session = Depends(get_db)):
    resume = get_owned_resume(db, resume_id, current.id)
    delete_resume(db, resume)
    return SuccessResponse(data=SuccessData(success=True, message="Resume deleted successfully"))


@router.post("/{resume_id}/copy", response_model=ResumeResponse, status_code=201)
def duplicate_resume(resume_id: str, current: CurrentUser = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    source = get_owned_resume(db, resume_id, current.id)
    return ResumeResponse(data=ResumeData(resume=ResumeOut.model_validate(copy_resume(db, source))))


@router.post("/{resume_id}/score", response_model=ScoreResponse)
async def score_resume(resume_id: str, body: Optional[ScoreRequest] = None,
                       current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    resume = get_owned_resume(db, resume_id, current.id)
    job = None
    if not resume.is_base_resume and resume.job_id:
        job = (
            db.query(Job)
            .filter(Job.id == resume.job_id, Job.user_id == current.id)
            .first()
        )

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config if body else None)
    score = await ai.score_resume(resume_to_dict(resume), job_to_dict(job) if job else None)
    return ScoreResponse(data=score)


@router.get("/{resume_id}/pdf")
def download_pdf(resume_id: str, current: CurrentUser = Depends(get_current_user),
                 db: Session = Depends(get_db)):
    resume = get_owned_resume(db, resume_id, current.id)
    pdf = render_resume_pdf(ResumeOut.model_validate(resume).model_dump())
    filename = re.sub(r"[^A-Za-z0-9_.-]+", "_", resume.name or "resume").strip("_") or "resume"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}.pdf"'},
    )
