"""
Attendee capacity enforcement for community events

Every mutation runs in one transaction that first bumps the event's version
(taking the event row's write lock), then admits or frees capacity through a
conditional UPDATE of going_count, then writes the attendee record. Writers
on the same event are therefore serialised; different events never contend.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import or_, update
from sqlmodel import Session, col, select

from src.attendance import AttendanceStateMachine
from src.database import atomic
from src.db_models import Attendee, CommunityEvent
from src.errors import AttendeeNotFound, EventFull, EventInactive, EventNotFound
from src.models import RsvpStatus

logger = logging.getLogger(__name__)


class CapacityGuard:
    """Join, change RSVP status and leave without ever overfilling an event"""

    def __init__(
        self, session: Session, machine: Optional[AttendanceStateMachine] = None
    ):
        self.session = session
        self.machine = machine or AttendanceStateMachine()

    def _get_event(self, event_id: int) -> CommunityEvent:
        event = self.session.get(CommunityEvent, event_id, populate_existing=True)
        if event is None:
            raise EventNotFound(f"Event {event_id} does not exist", event_id=event_id)
        return event

    def _lock_event(self, event_id: int) -> CommunityEvent:
        """Bump the event version and return the event as seen under the lock"""
        statement = (
            update(CommunityEvent)
            .where(col(CommunityEvent.id) == event_id)
            .values(version=CommunityEvent.version + 1)
            .execution_options(synchronize_session=False)
        )
        if self.session.exec(statement).rowcount == 0:
            raise EventNotFound(f"Event {event_id} does not exist", event_id=event_id)
        return self._get_event(event_id)

    def _find_attendee(self, event_id: int, user_id: int) -> Optional[Attendee]:
        statement = (
            select(Attendee)
            .where(Attendee.event_id == event_id, Attendee.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return self.session.exec(statement).first()

    def _ensure_active(self, event: CommunityEvent) -> None:
        if not event.is_active:
            raise EventInactive(
                "This event is no longer active", event_id=event.id
            )

    def _admit(self, event: CommunityEvent) -> None:
        """Take one 'going' slot, or raise EventFull"""
        statement = (
            update(CommunityEvent)
            .where(
                col(CommunityEvent.id) == event.id,
                or_(
                    col(CommunityEvent.max_attendees).is_(None),
                    col(CommunityEvent.going_count) < col(CommunityEvent.max_attendees),
                ),
            )
            .values(going_count=CommunityEvent.going_count + 1)
            .execution_options(synchronize_session=False)
        )
        if self.session.exec(statement).rowcount == 0:
            logger.warning(f"Event {event.id} is full ({event.max_attendees} going)")
            raise EventFull(
                "This event has reached maximum capacity",
                event_id=event.id,
                max_attendees=event.max_attendees,
            )

    def _free(self, event_id: int) -> None:
        """Give back one 'going' slot"""
        statement = (
            update(CommunityEvent)
            .where(col(CommunityEvent.id) == event_id, col(CommunityEvent.going_count) > 0)
            .values(going_count=CommunityEvent.going_count - 1)
            .execution_options(synchronize_session=False)
        )
        self.session.exec(statement)

    def _apply(
        self, event: CommunityEvent, attendee: Attendee, status: RsvpStatus
    ) -> None:
        transition = self.machine.plan(attendee.status, status)
        if transition.is_noop:
            return

        if transition.needs_capacity:
            self._admit(event)
        elif transition.frees_capacity:
            self._free(event.id)

        attendee.status = status.value
        attendee.updated_at = datetime.utcnow()
        self.session.add(attendee)

    def remaining_capacity(self, event_id: int) -> Optional[int]:
        """
        Get the number of free 'going' slots

        Returns:
            Free slots, or None if the event has no attendee cap
        """
        event = self._get_event(event_id)
        if event.max_attendees is None:
            return None
        return max(0, event.max_attendees - event.going_count)

    def get_attendee(self, event_id: int, user_id: int) -> Optional[Attendee]:
        """Get a user's attendee record for an event"""
        return self._find_attendee(event_id, user_id)

    def try_join(
        self,
        event_id: int,
        user_id: int,
        status: Union[str, RsvpStatus] = RsvpStatus.GOING,
    ) -> Attendee:
        """
        RSVP to an event; an existing attendee has its status changed instead

        Raises:
            EventNotFound: If the event does not exist
            EventInactive: If the event no longer accepts RSVPs
            EventFull: If status is 'going' and no slot is free
        """
        status = RsvpStatus.parse(status)

        with atomic(self.session):
            event = self._lock_event(event_id)
            self._ensure_active(event)

            attendee = self._find_attendee(event_id, user_id)
            if attendee is not None:
                self._apply(event, attendee, status)
            else:
                transition = self.machine.plan(None, status)
                if transition.needs_capacity:
                    self._admit(event)
                attendee = Attendee(
                    event_id=event_id, user_id=user_id, status=status.value
                )
                self.session.add(attendee)

        self.session.refresh(attendee)
        logger.info(f"User {user_id} RSVPed {status.value} to event {event_id}")
        return attendee

    def change_status(
        self, event_id: int, user_id: int, status: Union[str, RsvpStatus]
    ) -> Attendee:
        """
        Change an existing attendee's RSVP status

        Re-affirming 'going' always succeeds, even when the event is full.

        Raises:
            EventNotFound: If the event does not exist
            EventInactive: If the event no longer accepts RSVPs
            AttendeeNotFound: If the user has not RSVPed to this event
            EventFull: If moving to 'going' and no slot is free
        """
        status = RsvpStatus.parse(status)

        with atomic(self.session):
            event = self._lock_event(event_id)
            self._ensure_active(event)

            attendee = self._find_attendee(event_id, user_id)
            if attendee is None:
                raise AttendeeNotFound(
                    f"User {user_id} is not attending event {event_id}",
                    event_id=event_id,
                    user_id=user_id,
                )
            self._apply(event, attendee, status)

        self.session.refresh(attendee)
        logger.info(f"User {user_id} changed RSVP to {status.value} for event {event_id}")
        return attendee

    def leave(self, event_id: int, user_id: int) -> None:
        """
        Remove a user's attendee record

        Raises:
            EventNotFound: If the event does not exist
            AttendeeNotFound: If the user has not RSVPed to this event
        """
        with atomic(self.session):
            self._lock_event(event_id)

            attendee = self._find_attendee(event_id, user_id)
            if attendee is None:
                raise AttendeeNotFound(
                    f"User {user_id} is not attending event {event_id}",
                    event_id=event_id,
                    user_id=user_id,
                )
            if self.machine.frees_on_leave(attendee.status):
                self._free(event_id)
            self.session.delete(attendee)

        logger.info(f"User {user_id} left event {event_id}")
