"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for the help desk tables the SLA engine reads.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    String, DateTime, Boolean, Integer, Float, Text, Uuid, ForeignKey, JSON
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database import Base
from src.config import TicketStatus


class ProfileModel(Base):
    """
    User profile with a contact address.

    Maps to the 'profiles' table.
    """
    __tablename__ = "profiles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class UserRoleModel(Base):
    """
    Role held by a user.

    Maps to the 'user_roles' table.
    """
    __tablename__ = "user_roles"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)


class TicketPriorityModel(Base):
    """
    Priority tier with its SLA durations.

    Maps to the 'ticket_priorities' table.
    """
    __tablename__ = "ticket_priorities"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    response_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    resolution_time_hours: Mapped[float] = mapped_column(Float, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class TicketModel(Base):
    """
    Database model for Ticket entity.

    Maps to the 'tickets' table.
    """
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Business identifier
    ticket_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    # Ticket content
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=TicketStatus.OPEN, index=True)

    # People
    requester_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=False)
    assignee_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("profiles.id"), nullable=True)
    priority_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("ticket_priorities.id"), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    first_response_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # SLA breach flags (NULL treated as not breached)
    sla_breach_response: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=False)
    sla_breach_resolution: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=False)

    requester: Mapped[ProfileModel] = relationship(foreign_keys=[requester_id], lazy="raise")
    assignee: Mapped[Optional[ProfileModel]] = relationship(foreign_keys=[assignee_id], lazy="raise")
    priority: Mapped[Optional[TicketPriorityModel]] = relationship(lazy="raise")


class EscalationRuleModel(Base):
    """
    Management escalation rule.

    Maps to the 'escalation_rules' table.
    """
    __tablename__ = "escalation_rules"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    priority_id: Mapped[Optional[UUID]] = mapped_column(Uuid, ForeignKey("ticket_priorities.id"), nullable=True)
    escalation_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    escalate_after_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    notify_emails: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
