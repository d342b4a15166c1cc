# partnerhub/models/project.py

from datetime import datetime
from typing import List

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship, Mapped

from partnerhub.db.session import Base
from partnerhub.models.partner import Partner


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)
    title: Mapped[str] = Column(String, nullable=False)
    description: Mapped[str] = Column(Text, nullable=True)
    reference_link: Mapped[str] = Column(String, nullable=True)
    recreate_link: Mapped[str] = Column(String, nullable=True)
    download_link: Mapped[str] = Column(String, nullable=True)
    deadline: Mapped[datetime] = Column(DateTime(timezone=True), nullable=True)

    # Вознаграждение за выполненный проект, в кликах
    reward_clicks: Mapped[int] = Column(Integer, nullable=False, default=0)

    # Статусы: 'active', 'inactive', 'completed'
    status: Mapped[str] = Column(String(16), default="active", nullable=False, index=True)
    created_by: Mapped[int] = Column(Integer, ForeignKey("partners.id"), nullable=False)

    created_at: Mapped[datetime] = Column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    assignments: Mapped[List["ProjectAssignment"]] = relationship(back_populates="project", cascade="all, delete-orphan")


class ProjectAssignment(Base):
    __tablename__ = "project_assignments"
    __table_args__ = (UniqueConstraint("project_id", "partner_id", name="uq_assignment_project_partner"),)

    id: Mapped[int] = Column(Integer, primary_key=True)
    project_id: Mapped[int] = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    partner_id: Mapped[int] = Column(Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False, index=True)

    # pending -> accepted | rejected; accepted -> submitted -> approved | rejected_by_admin
    status: Mapped[str] = Column(String(32), default="pending", nullable=False)

    accepted_at: Mapped[datetime] = Column(DateTime(timezone=True), nullable=True)
    submitted_at: Mapped[datetime] = Column(DateTime(timezone=True), nullable=True)
    submission_link: Mapped[str] = Column(String, nullable=True)

    admin_feedback: Mapped[str] = Column(Text, nullable=True)
    reviewed_at: Mapped[datetime] = Column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[int] = Column(Integer, ForeignKey("partners.id"), nullable=True)

    created_at: Mapped[datetime] = Column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    project: Mapped["Project"] = relationship(back_populates="assignments")
    partner: Mapped["Partner"] = relationship(foreign_keys=[partner_id])
