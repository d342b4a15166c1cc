# partnerhub/schemas/project.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ProjectStatus = Literal["active", "inactive", "completed"]
AssignmentStatus = Literal["pending", "accepted", "rejected", "submitted", "approved", "rejected_by_admin"]


class ProjectBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    reference_link: Optional[str] = None
    recreate_link: Optional[str] = None
    download_link: Optional[str] = None
    deadline: Optional[datetime] = None
    reward_clicks: int = Field(default=0, ge=0)


class ProjectCreate(ProjectBase):
    assigned_partner_ids: List[int] = []


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    reference_link: Optional[str] = None
    recreate_link: Optional[str] = None
    download_link: Optional[str] = None
    deadline: Optional[datetime] = None
    reward_clicks: Optional[int] = Field(default=None, ge=0)
    status: Optional[ProjectStatus] = None
    # Дополнительные партнеры для назначения
    assign_partner_ids: List[int] = []


class Project(ProjectBase):
    id: int
    status: ProjectStatus
    created_by: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    assigned_partners_count: int = 0

    class Config:
        from_attributes = True


class Assignment(BaseModel):
    id: int
    project_id: int
    partner_id: int
    status: AssignmentStatus
    accepted_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    submission_link: Optional[str] = None
    admin_feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AdminAssignment(Assignment):
    username: str


class ProjectWithAssignment(ProjectBase):
    id: int
    status: ProjectStatus
    created_at: datetime
    assignment: Assignment


class AssignmentResponse(BaseModel):
    action: Literal["accept", "reject"]


class AssignmentSubmission(BaseModel):
    submission_link: str = Field(min_length=1)


class AssignmentReview(BaseModel):
    status: Literal["approved", "rejected_by_admin"]
    admin_feedback: Optional[str] = None
