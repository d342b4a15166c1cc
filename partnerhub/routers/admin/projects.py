# partnerhub/routers/admin/projects.py

from typing import List, Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from partnerhub.dependencies import get_admin_partner, get_db
from partnerhub.models.partner import Partner
from partnerhub.schemas.project import (
    AdminAssignment, Assignment, AssignmentReview, Project, ProjectCreate, ProjectUpdate,
)
from partnerhub.services import project as project_service

router = APIRouter()


@router.get("/projects", response_model=List[Project])
def get_projects_list(
    status_filter: Literal["active", "inactive", "completed"] | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return project_service.get_all_projects(db, status_filter=status_filter)


@router.post("/projects", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    admin: Partner = Depends(get_admin_partner),
    db: Session = Depends(get_db),
):
    """[АДМИН] Создает проект и сразу назначает его выбранным партнерам."""
    return await project_service.create_project(db, admin, project_data)


@router.put("/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: int,
    project_data: ProjectUpdate,
    db: Session = Depends(get_db),
):
    return await project_service.update_project(db, project_id, project_data)


@router.get("/projects/{project_id}/assignments", response_model=List[AdminAssignment])
def get_project_assignments(project_id: int, db: Session = Depends(get_db)):
    return project_service.get_project_assignments(db, project_id)


@router.put("/assignments/{assignment_id}/review", response_model=Assignment)
async def review_assignment(
    assignment_id: int,
    review: AssignmentReview,
    admin: Partner = Depends(get_admin_partner),
    db: Session = Depends(get_db),
):
    return await project_service.review_assignment(db, admin, assignment_id, review)
