"""
Database models using SQLModel
Provides type-safe ORM with Pydantic validation
"""

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship
from typing import Dict, Optional, List
from datetime import datetime

from src.models import ResourceType


class User(SQLModel, table=True):
    """User database model"""

    __tablename__ = "users"

    user_id: int = Field(primary_key=True)
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    username: Optional[str] = Field(default=None, max_length=30)
    role: str = Field(default="user", max_length=10, index=True)  # user, premium, admin
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Usage counters, written only by QuotaLedger
    usage_task: int = Field(default=0)
    usage_event: int = Field(default=0)
    usage_contact: int = Field(default=0)
    usage_shopping_list: int = Field(default=0)
    usage_category: int = Field(default=0)

    # Relationships
    organized_events: List["CommunityEvent"] = Relationship(back_populates="organizer")

    @property
    def usage(self) -> Dict[ResourceType, int]:
        """Usage counters keyed by resource type"""
        return {
            resource_type: getattr(self, resource_type.usage_column)
            for resource_type in ResourceType
        }


class CommunityEvent(SQLModel, table=True):
    """Community event with optional attendee cap"""

    __tablename__ = "community_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    organizer_id: int = Field(foreign_key="users.user_id", index=True)
    date: datetime = Field(index=True)
    category: str = Field(default="other", max_length=20)  # meetup, workshop, social, business, other
    is_active: bool = Field(default=True, index=True)
    max_attendees: Optional[int] = Field(default=None, ge=1)  # None means unlimited

    # Number of attendees with status 'going', compared against max_attendees
    going_count: int = Field(default=0)
    # Bumped by every attendee mutation; the bump serialises writers per event
    version: int = Field(default=0)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    organizer: Optional[User] = Relationship(back_populates="organized_events")
    attendees: List["Attendee"] = Relationship(
        back_populates="event",
        sa_relationship_kwargs={
            "order_by": "Attendee.id",
            "cascade": "all, delete-orphan",
        },
    )


class Attendee(SQLModel, table=True):
    """RSVP record, at most one per (event, user)"""

    __tablename__ = "event_attendees"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_attendee"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="community_events.id", index=True)
    user_id: int = Field(foreign_key="users.user_id", index=True)
    status: str = Field(default="going", max_length=10)  # going, maybe, not-going
    joined_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    event: Optional[CommunityEvent] = Relationship(back_populates="attendees")
