"""
Repository pattern for database access
Provides clean separation between business logic and data access

Usage counters and attendee records are not written here; QuotaLedger and
CapacityGuard own those.
"""

from sqlmodel import Session, select, col, func
from typing import List, Optional, Dict, Union
from datetime import datetime

from src.db_models import User, CommunityEvent, Attendee
from src.errors import UserNotFound
from src.models import Role, RsvpStatus


class UserRepository:
    """Repository for User operations"""

    def __init__(self, session: Session):
        self.session = session

    def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return self.session.get(User, user_id)

    def create_user(
        self,
        user_id: int,
        email: Optional[str] = None,
        username: Optional[str] = None,
        role: Union[str, Role] = Role.USER,
    ) -> User:
        """Create new user with all usage counters at zero"""
        user = User(
            user_id=user_id,
            email=email,
            username=username,
            role=Role.parse(role).value,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_or_create_user(
        self, user_id: int, email: Optional[str] = None, username: Optional[str] = None
    ) -> User:
        """Get existing user or create new one"""
        user = self.get_user(user_id)
        if user is None:
            user = self.create_user(user_id, email, username)
        return user

    def set_role(self, user_id: int, role: Union[str, Role]) -> User:
        """Change a user's role"""
        role = Role.parse(role)
        user = self.get_user(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} does not exist", user_id=user_id)
        user.role = role.value
        self.session.commit()
        self.session.refresh(user)
        return user

    def set_active(self, user_id: int, is_active: bool) -> None:
        """Activate or deactivate a user"""
        user = self.get_user(user_id)
        if user is None:
            raise UserNotFound(f"User {user_id} does not exist", user_id=user_id)
        user.is_active = is_active
        self.session.commit()

    def get_all_users(self) -> List[User]:
        """Get all users"""
        statement = select(User)
        return list(self.session.exec(statement))

    def get_users_by_role(self, role: Union[str, Role]) -> List[User]:
        """Get all users with a given role"""
        statement = select(User).where(User.role == Role.parse(role).value)
        return list(self.session.exec(statement))

    def delete_user(self, user_id: int) -> bool:
        """Delete user"""
        user = self.get_user(user_id)
        if user:
            self.session.delete(user)
            self.session.commit()
            return True
        return False


class EventRepository:
    """Repository for CommunityEvent operations"""

    def __init__(self, session: Session):
        self.session = session

    def create_event(
        self,
        organizer_id: int,
        title: str,
        date: datetime,
        max_attendees: Optional[int] = None,
        category: str = "other",
    ) -> CommunityEvent:
        """Create a new community event with no attendees"""
        if max_attendees is not None and max_attendees < 1:
            raise ValueError("Maximum attendees must be at least 1")

        event = CommunityEvent(
            organizer_id=organizer_id,
            title=title,
            date=date,
            max_attendees=max_attendees,
            category=category,
        )
        self.session.add(event)
        self.session.commit()
        self.session.refresh(event)
        return event

    def get_event(self, event_id: int) -> Optional[CommunityEvent]:
        """Get event by ID"""
        return self.session.get(CommunityEvent, event_id, populate_existing=True)

    def deactivate_event(self, event_id: int) -> bool:
        """Stop an event from accepting RSVPs"""
        event = self.get_event(event_id)
        if event is None:
            return False
        event.is_active = False
        self.session.commit()
        return True

    def get_upcoming_events(self, now: Optional[datetime] = None) -> List[CommunityEvent]:
        """Get active events that have not started yet, soonest first"""
        statement = (
            select(CommunityEvent)
            .where(
                CommunityEvent.is_active == True,  # noqa: E712
                CommunityEvent.date >= (now or datetime.utcnow()),
            )
            .order_by(CommunityEvent.date)
        )
        return list(self.session.exec(statement))

    def get_events_by_category(self, category: str) -> List[CommunityEvent]:
        """Get active events of one category, soonest first"""
        statement = (
            select(CommunityEvent)
            .where(
                CommunityEvent.category == category,
                CommunityEvent.is_active == True,  # noqa: E712
            )
            .order_by(CommunityEvent.date)
        )
        return list(self.session.exec(statement))

    def get_user_events(self, user_id: int) -> List[CommunityEvent]:
        """Get active events the user has an attendee record for"""
        statement = (
            select(CommunityEvent)
            .join(Attendee, col(Attendee.event_id) == col(CommunityEvent.id))
            .where(Attendee.user_id == user_id, CommunityEvent.is_active == True)  # noqa: E712
            .order_by(CommunityEvent.date)
        )
        return list(self.session.exec(statement))

    def get_attendees(self, event_id: int) -> List[Dict]:
        """Get an event's attendees in RSVP order"""
        statement = (
            select(Attendee)
            .where(Attendee.event_id == event_id)
            .order_by(col(Attendee.id))
            .execution_options(populate_existing=True)
        )
        attendees = self.session.exec(statement).all()

        return [
            {
                "user_id": attendee.user_id,
                "status": attendee.status,
                "joined_at": attendee.joined_at.isoformat(),
            }
            for attendee in attendees
        ]

    def count_going(self, event_id: int) -> int:
        """Count attendee records with status 'going'"""
        statement = (
            select(func.count())
            .select_from(Attendee)
            .where(
                Attendee.event_id == event_id,
                Attendee.status == RsvpStatus.GOING.value,
            )
        )
        return self.session.exec(statement).one()
