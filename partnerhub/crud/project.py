# partnerhub/crud/project.py

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from partnerhub.models.project import Project, ProjectAssignment


def create_project(db: Session, created_by: int, data: Dict[str, Any]) -> Project:
    """
    Создает проект и добавляет его в сессию.
    Требует внешнего вызова db.commit().
    """
    project = Project(created_by=created_by, **data)
    db.add(project)
    db.flush() # Получаем ID проекта до коммита
    return project

def create_assignments(db: Session, project_id: int, partner_ids: List[int]) -> List[ProjectAssignment]:
    """Создает назначения в статусе 'pending'. Требует внешнего вызова db.commit()."""
    assignments = [
        ProjectAssignment(project_id=project_id, partner_id=partner_id, status="pending")
        for partner_id in partner_ids
    ]
    db.add_all(assignments)
    db.flush()
    return assignments

def get_project_by_id(db: Session, project_id: int) -> Optional[Project]:
    return db.query(Project).filter(Project.id == project_id).first()

def get_projects(db: Session, status: Optional[str] = None) -> List[Project]:
    query = db.query(Project)
    if status:
        query = query.filter(Project.status == status)
    return query.order_by(Project.created_at.desc(), Project.id.desc()).all()

def count_assignments(db: Session, project_id: int) -> int:
    return db.query(func.count(ProjectAssignment.id)).filter(ProjectAssignment.project_id == project_id).scalar()

def get_assignment_by_id(db: Session, assignment_id: int) -> Optional[ProjectAssignment]:
    return db.query(ProjectAssignment).filter(ProjectAssignment.id == assignment_id).first()

def get_project_assignments(db: Session, project_id: int) -> List[ProjectAssignment]:
    return db.query(ProjectAssignment).filter(
        ProjectAssignment.project_id == project_id
    ).order_by(ProjectAssignment.id.asc()).all()

def get_partner_assignments(db: Session, partner_id: int) -> List[ProjectAssignment]:
    return db.query(ProjectAssignment).filter(
        ProjectAssignment.partner_id == partner_id
    ).order_by(ProjectAssignment.created_at.desc(), ProjectAssignment.id.desc()).all()

def get_assigned_partner_ids(db: Session, project_id: int) -> List[int]:
    rows = db.query(ProjectAssignment.partner_id).filter(ProjectAssignment.project_id == project_id).all()
    return [row[0] for row in rows]

def sum_approved_reward_clicks(db: Session, partner_id: int) -> int:
    """Сумма вознаграждений (в кликах) по одобренным проектам партнера."""
    total = db.query(func.sum(Project.reward_clicks)).join(
        ProjectAssignment, ProjectAssignment.project_id == Project.id
    ).filter(
        ProjectAssignment.partner_id == partner_id,
        ProjectAssignment.status == "approved",
    ).scalar()
    return total or 0
