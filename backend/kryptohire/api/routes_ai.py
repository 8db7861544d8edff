from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..ai_services import AIService, get_ai_service
from ..auth import CurrentUser, get_current_user
from ..billing import get_subscription_plan
from ..db import get_db
from ..schemas import (
    AIConfig,
    BulletPoints,
    BulletPointsResponse,
    ImprovedBullet,
    ImprovedBulletResponse,
    ImprovePointRequest,
    ProjectPointsRequest,
    WorkExperiencePointsRequest,
)

router = APIRouter(prefix="/ai", tags=["ai"])


def _service(db: Session, current: CurrentUser, config: Optional[AIConfig]) -> AIService:
    return get_ai_service(db, current.id, get_subscription_plan(db, current.id), config)


@router.post("/work-experience/points", response_model=BulletPointsResponse)
async def work_experience_points(body: WorkExperiencePointsRequest,
                                 current: CurrentUser = Depends(get_current_user),
                                 db: Session = Depends(get_db)):
    experience = body.model_dump(include={"position", "company", "date", "technologies"})
    points = await _service(db, current, body.config).generate_work_experience_points(
        experience, body.target_role, body.num_points, body.existing_points
    )
    return BulletPointsResponse(data=BulletPoints(points=points))


@router.post("/work-experience/improve", response_model=ImprovedBulletResponse)
async def improve_work_experience(body: ImprovePointRequest, current: CurrentUser = Depends(get_current_user),
                                  db: Session = Depends(get_db)):
    content = await _service(db, current, body.config).improve_work_experience_point(body.point, body.instruction)
    return ImprovedBulletResponse(data=ImprovedBullet(content=content))


@router.post("/projects/points", response_model=BulletPointsResponse)
async def project_points(body: ProjectPointsRequest, current: CurrentUser = Depends(get_current_user),
                         db: Session = Depends(get_db)):
    project = body.model_dump(include={"name", "technologies"})
    points = await _service(db, current, body.config).generate_project_points(
        project, body.target_role, body.num_points, body.existing_points
    )
    return BulletPointsResponse(data=BulletPoints(points=points))


@router.post("/projects/improve", response_model=ImprovedBulletResponse)
async def improve_project(body: ImprovePointRequest, current: CurrentUser = Depends(get_current_user),
                          db: Session = Depends(get_db)):
    content = await _service(db, current, body.config).improve_project_point(body.point, body.instruction)
    return ImprovedBulletResponse(data=ImprovedBullet(content=content))
