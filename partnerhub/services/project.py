# partnerhub/services/project.py

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from partnerhub.crud import notification as crud_notification
from partnerhub.crud import partner as crud_partner
from partnerhub.crud import project as crud_project
from partnerhub.models.partner import Partner
from partnerhub.models.project import Project, ProjectAssignment
from partnerhub.schemas import project as project_schemas
from partnerhub.services import events as events_service

logger = logging.getLogger(__name__)


def _to_schema(db: Session, project: Project) -> project_schemas.Project:
    result = project_schemas.Project.model_validate(project)
    result.assigned_partners_count = crud_project.count_assignments(db, project.id)
    return result


def _assign(db: Session, project: Project, partner_ids: List[int]) -> List[ProjectAssignment]:
    """
    Назначает проект партнерам, пропуская уже назначенных и несуществующих.
    Каждому новому исполнителю создается уведомление. Коммит делает вызывающий.
    """
    already_assigned = set(crud_project.get_assigned_partner_ids(db, project.id))
    new_ids = []
    for partner_id in dict.fromkeys(partner_ids):
        if partner_id in already_assigned:
            continue
        if not crud_partner.get_partner_by_id(db, partner_id):
            logger.warning(f"Skipping assignment of project {project.id} to unknown partner {partner_id}")
            continue
        new_ids.append(partner_id)

    assignments = crud_project.create_assignments(db, project.id, new_ids)
    for assignment in assignments:
        crud_notification.create_notification(
            db,
            partner_id=assignment.partner_id,
            type="project_assigned",
            title="New project assigned",
            message=f"You have been assigned the project \"{project.title}\".",
            related_entity_id=str(assignment.id),
        )
    return assignments


# --- Администратор ---

async def create_project(db: Session, admin: Partner, data: project_schemas.ProjectCreate) -> project_schemas.Project:
    project = crud_project.create_project(db, created_by=admin.id, data=data.model_dump(exclude={"assigned_partner_ids"}))
    assignments = _assign(db, project, data.assigned_partner_ids)

    changes = [events_service.record_change(db, "projects", "insert", row_id=project.id)]
    changes += [
        events_service.record_change(db, "project_assignments", "insert", row_id=a.id, partner_id=a.partner_id)
        for a in assignments
    ]
    db.commit()
    db.refresh(project)
    await events_service.publish(changes)
    logger.info(f"Admin {admin.id} created project {project.id} with {len(assignments)} assignments")
    return _to_schema(db, project)


async def update_project(db: Session, project_id: int, data: project_schemas.ProjectUpdate) -> project_schemas.Project:
    project = crud_project.get_project_by_id(db, project_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    update_data = data.model_dump(exclude_unset=True, exclude={"assign_partner_ids"})
    for key, value in update_data.items():
        setattr(project, key, value)
    assignments = _assign(db, project, data.assign_partner_ids)

    changes = [events_service.record_change(db, "projects", "update", row_id=project.id)]
    changes += [
        events_service.record_change(db, "project_assignments", "insert", row_id=a.id, partner_id=a.partner_id)
        for a in assignments
    ]
    db.commit()
    db.refresh(project)
    await events_service.publish(changes)
    return _to_schema(db, project)


def get_all_projects(db: Session, status_filter: str | None = None) -> List[project_schemas.Project]:
    return [_to_schema(db, p) for p in crud_project.get_projects(db, status=status_filter)]


def get_project_assignments(db: Session, project_id: int) -> List[project_schemas.AdminAssignment]:
    if not crud_project.get_project_by_id(db, project_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return [
        project_schemas.AdminAssignment(
            **project_schemas.Assignment.model_validate(a).model_dump(),
            username=a.partner.username if a.partner else "Unknown",
        )
        for a in crud_project.get_project_assignments(db, project_id)
    ]


async def review_assignment(
    db: Session, admin: Partner, assignment_id: int, review: project_schemas.AssignmentReview
) -> ProjectAssignment:
    """Проверка сданной работы. Возможна только из статуса 'submitted'."""
    assignment = crud_project.get_assignment_by_id(db, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    if assignment.status != "submitted":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only submitted work can be reviewed (current status: {assignment.status})",
        )

    assignment.status = review.status
    assignment.admin_feedback = review.admin_feedback
    assignment.reviewed_at = datetime.now(timezone.utc)
    assignment.reviewed_by = admin.id

    if review.status == "approved":
        notification_type, title = "project_approved", "Project approved"
        message = f"Your work on \"{assignment.project.title}\" was approved."
    else:
        notification_type, title = "project_rejected", "Project needs changes"
        message = f"Your work on \"{assignment.project.title}\" was rejected."
    if review.admin_feedback:
        message += f" Feedback: {review.admin_feedback}"
    crud_notification.create_notification(
        db,
        partner_id=assignment.partner_id,
        type=notification_type,
        title=title,
        message=message,
        related_entity_id=str(assignment.id),
    )
    event = events_service.record_change(
        db, "project_assignments", "update", row_id=assignment.id, partner_id=assignment.partner_id
    )
    db.commit()
    db.refresh(assignment)
    await events_service.publish([event])
    logger.info(f"Admin {admin.id} reviewed assignment {assignment.id}: {review.status}")
    return assignment


# --- Партнер ---

def get_my_projects(db: Session, partner: Partner) -> List[project_schemas.ProjectWithAssignment]:
    return [
        project_schemas.ProjectWithAssignment(
            id=a.project.id,
            title=a.project.title,
            description=a.project.description,
            reference_link=a.project.reference_link,
            recreate_link=a.project.recreate_link,
            download_link=a.project.download_link,
            deadline=a.project.deadline,
            reward_clicks=a.project.reward_clicks,
            status=a.project.status,
            created_at=a.project.created_at,
            assignment=project_schemas.Assignment.model_validate(a),
        )
        for a in crud_project.get_partner_assignments(db, partner.id)
    ]


def _get_own_assignment(db: Session, partner: Partner, assignment_id: int) -> ProjectAssignment:
    assignment = crud_project.get_assignment_by_id(db, assignment_id)
    # Чужое назначение неотличимо от несуществующего
    if not assignment or assignment.partner_id != partner.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return assignment


async def respond_to_assignment(
    db: Session, partner: Partner, assignment_id: int, response: project_schemas.AssignmentResponse
) -> ProjectAssignment:
    assignment = _get_own_assignment(db, partner, assignment_id)
    if assignment.status != "pending":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Assignment has already been answered (current status: {assignment.status})",
        )

    if response.action == "accept":
        assignment.status = "accepted"
        assignment.accepted_at = datetime.now(timezone.utc)
    else:
        assignment.status = "rejected"

    event = events_service.record_change(db, "project_assignments", "update", row_id=assignment.id, partner_id=partner.id)
    db.commit()
    db.refresh(assignment)
    await events_service.publish([event])
    return assignment


async def submit_assignment(
    db: Session, partner: Partner, assignment_id: int, submission: project_schemas.AssignmentSubmission
) -> ProjectAssignment:
    assignment = _get_own_assignment(db, partner, assignment_id)
    if assignment.status != "accepted":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only accepted assignments can be submitted (current status: {assignment.status})",
        )

    assignment.status = "submitted"
    assignment.submission_link = submission.submission_link
    assignment.submitted_at = datetime.now(timezone.utc)

    event = events_service.record_change(db, "project_assignments", "update", row_id=assignment.id, partner_id=partner.id)
    db.commit()
    db.refresh(assignment)
    await events_service.publish([event])
    logger.info(f"Partner {partner.id} submitted assignment {assignment.id}")
    return assignment
