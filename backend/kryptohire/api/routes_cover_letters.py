from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..ai_services import get_ai_service
from ..auth import CurrentUser, get_current_user
from ..billing import get_subscription_plan
from ..db import get_db
from ..resumes import get_owned_job, get_owned_resume, job_to_dict, resume_to_dict
from ..schemas import CoverLetterData, CoverLetterRequest, CoverLetterResponse

router = APIRouter(prefix="/cover-letters", tags=["cover-letters"])


@router.post("", response_model=CoverLetterResponse)
async def generate_cover_letter(body: CoverLetterRequest, current: CurrentUser = Depends(get_current_user),
                                db: Session = Depends(get_db)):
    resume = get_owned_resume(db, body.resume_id, current.id)
    job = get_owned_job(db, body.job_id, current.id)

    plan = get_subscription_plan(db, current.id)
    ai = get_ai_service(db, current.id, plan, body.config)
    letter = await ai.generate_cover_letter(resume_to_dict(resume), job_to_dict(job), body.tone, body.length)

    return CoverLetterResponse(data=CoverLetterData(
        cover_letter=letter,
        metadata={
            "resume_id": resume.id,
            "job_id": job.id,
            "company_name": job.company_name,
            "position_title": job.position_title,
            "tone": body.tone,
            "length": body.length,
            "word_count": len(letter.split()),
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
    ))
