# partnerhub/routers/projects.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_current_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.project import (
    Assignment, AssignmentResponse, AssignmentSubmission, ProjectWithAssignment,
)
from partnerhub.services import project as project_service

router = APIRouter()


@router.get("/projects", response_model=List[ProjectWithAssignment])
def get_my_projects(
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    """Проекты, назначенные текущему партнеру, вместе со статусом назначения."""
    return project_service.get_my_projects(db, current_partner)


@router.post("/projects/{assignment_id}/respond", response_model=Assignment)
async def respond_to_project(
    assignment_id: int,
    response: AssignmentResponse,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return await project_service.respond_to_assignment(db, current_partner, assignment_id, response)


@router.post("/projects/{assignment_id}/submit", response_model=Assignment)
async def submit_project(
    assignment_id: int,
    submission: AssignmentSubmission,
    current_partner: Partner = Depends(get_current_partner),
    db: Session = Depends(get_db)
):
    return await project_service.submit_assignment(db, current_partner, assignment_id, submission)
