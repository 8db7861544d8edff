import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..ai_services import get_ai_service
from ..auth import CurrentUser, get_current_user
from ..billing import get_subscription_plan
from ..db import get_db
from ..errors import ValidationError
from ..ingest import fetch_job_listing
from ..keywords import extract_keywords
from ..models import Job
from ..resumes import get_owned_job
from ..schemas import (
    EmploymentType,
    JobCreate,
    JobData,
    JobImportRequest,
    JobListData,
    JobListResponse,
    JobOut,
    JobResponse,
    JobUpdate,
    SuccessData,
    SuccessResponse,
    WorkLocation,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])

MAX_PAGE_SIZE = 100


@router.get("", response_model=JobListResponse)
def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    workLocation: Optional[WorkLocation] = None,
    employmentType: Optional[EmploymentType] = None,
    current: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    limit = min(limit, MAX_PAGE_SIZE)
    q = db.query(Job).filter(Job.user_id == current.id)
    if workLocation:
        q = q.filter(Job.work_location == workLocation)
    if employmentType:
        q = q.filter(Job.employment_type == employmentType)

    total = q.count()
    rows = (
        q.order_by(Job.created_at.desc(), Job.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return JobListResponse(data=JobListData(
        jobs=[JobOut.model_validate(j) for j in rows],
        totalCount=total,
        currentPage=page,
        totalPages=math.ceil(total / limit) if total else 0,
    ))


@router.post("", response_model=JobResponse, status_code=201)
def create_job(body: JobCreate, current: CurrentUser = Depends(get_current_user),
               db: Session = Depends(get_db)):
    data = body.model_dump()
    if not data.get("keywords"):
        data["keywords"] = extract_keywords(body.description, top_k=10)
    job = Job(user_id=current.id, **data)
    db.add(job); db.commit(); db.refresh(job)
    return JobResponse(data=JobData(job=JobOut.model_validate(job)))


@router.post("/import", response_model=JobResponse, status_code=201)
async def import_job(body: JobImportRequest, current: CurrentUser = Depends(get_current_user),
                     db: Session = Depends(get_db)):
    """Turn a raw listing (pasted text or a posting URL) into a saved job."""
    text = (body.text or "").strip()
    if not text and not body.url:
        raise ValidationError("Provide the job listing text or a url")
    if not text:
        text = await fetch_job_listing(body.url)

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)
    listing = await ai.format_job_listing(text)

    data = listing.model_dump()
    if not data.get("job_url") and body.url:
        data["job_url"] = body.url
    if not data.get("keywords"):
        data["keywords"] = extract_keywords(data.get("description") or text, top_k=10)
    for k in ("job_url", "location", "salary_range"):
        data[k] = data.get(k) or None

    job = Job(user_id=current.id, **data)
    db.add(job); db.commit(); db.refresh(job)
    logger.info(f"Imported job {job.id} ({job.position_title} at {job.company_name})")
    return JobResponse(data=JobData(job=JobOut.model_validate(job)))


@router.get("/{job_id}", response_model=JobResponse)
def get_job(job_id: str, current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return JobResponse(data=JobData(job=JobOut.model_validate(get_owned_job(db, job_id, current.id))))


@router.patch("/{job_id}", response_model=JobResponse)
def update_job(job_id: str, body: JobUpdate, current: CurrentUser = Depends(get_current_user),
               db: Session = Depends(get_db)):
    job = get_owned_job(db, job_id, current.id)
    for k, v in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(job, k, v)
    db.commit(); db.refresh(job)
    return JobResponse(data=JobData(job=JobOut.model_validate(job)))


@router.delete("/{job_id}", response_model=SuccessResponse)
def delete_job(job_id: str, current: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    job = get_owned_job(db, job_id, current.id)
    db.delete(job); db.commit()
    return SuccessResponse(data=SuccessData(success=True, message="Job deleted successfully"))
