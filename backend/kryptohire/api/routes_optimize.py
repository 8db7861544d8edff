import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..ai_services import get_ai_service
from ..auth import CurrentUser, get_current_user
from ..billing import get_subscription_plan
from ..db import get_db
from ..errors import NotFoundError
from ..optimizer import run_optimization
from ..resumes import apply_content, get_owned_job, get_owned_resume, job_to_dict, resume_to_dict
from ..schemas import (
    ChatOptimizeData,
    ChatOptimizeRequest,
    ChatOptimizeResponse,
    OptimizeData,
    OptimizeRequest,
    OptimizeResponse,
    ResumeOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/optimize", tags=["optimize"])


@router.post("", response_model=OptimizeResponse)
async def optimize(body: OptimizeRequest, current: CurrentUser = Depends(get_current_user),
                   db: Session = Depends(get_db)):
    """Tailor a base resume to a job, then score and rewrite it until it reaches the target score."""
    base = get_owned_resume(db, body.base_resume_id, current.id)
    if not base.is_base_resume:
        raise NotFoundError("Only base resumes can be optimized. Please select a base resume.")
    job = get_owned_job(db, body.job_id, current.id)

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)
    result = await run_optimization(db, ai, base, job, body.target_score, body.max_iterations)

    return OptimizeResponse(data=OptimizeData(
        resume=ResumeOut.model_validate(result["resume"]),
        score=result["score"],
        iterations=result["iterations"],
        target_achieved=result["target_achieved"],
        optimization_history=result["optimization_history"],
    ))


@router.post("/chat", response_model=ChatOptimizeResponse)
async def chat_optimize(body: ChatOptimizeRequest, current: CurrentUser = Depends(get_current_user),
                        db: Session = Depends(get_db)):
    resume = get_owned_resume(db, body.resume_id, current.id)
    job = get_owned_job(db, body.job_id, current.id) if body.job_id else None

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)
    result = await ai.chat_optimize(resume_to_dict(resume), body.message, job_to_dict(job) if job else None)

    apply_content(resume, result.content)
    db.commit(); db.refresh(resume)
    logger.info(f"Chat edit applied to resume {resume.id}: {len(result.changes_applied)} changes")

    return ChatOptimizeResponse(data=ChatOptimizeData(
        resume=ResumeOut.model_validate(resume),
        message=result.message,
        changes_applied=result.changes_applied,
    ))
