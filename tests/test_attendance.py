"""
Tests for the RSVP state machine
"""

import pytest

from src.attendance import AttendanceStateMachine, Transition
from src.errors import InvalidStatusTransition
from src.models import RsvpStatus

GOING = RsvpStatus.GOING
MAYBE = RsvpStatus.MAYBE
NOT_GOING = RsvpStatus.NOT_GOING


class TestAttendanceStateMachine:
    """Tests for AttendanceStateMachine.plan"""

    @pytest.mark.parametrize("source", [None, GOING, MAYBE, NOT_GOING])
    @pytest.mark.parametrize("target", [GOING, MAYBE, NOT_GOING])
    def test_every_state_reachable(self, source, target):
        """Test the table allows every move"""
        transition = AttendanceStateMachine().plan(source, target)
        assert transition == Transition(source, target)

    @pytest.mark.parametrize(
        "source,target,needs",
        [
            (None, GOING, True),
            (MAYBE, GOING, True),
            (NOT_GOING, GOING, True),
            (GOING, GOING, False),
            (None, MAYBE, False),
            (GOING, MAYBE, False),
            (MAYBE, NOT_GOING, False),
        ],
    )
    def test_needs_capacity(self, source, target, needs):
        """Test capacity is consulted only when entering 'going'"""
        assert AttendanceStateMachine().plan(source, target).needs_capacity is needs

    @pytest.mark.parametrize(
        "source,target,frees",
        [
            (GOING, MAYBE, True),
            (GOING, NOT_GOING, True),
            (GOING, GOING, False),
            (MAYBE, NOT_GOING, False),
            (None, MAYBE, False),
        ],
    )
    def test_frees_capacity(self, source, target, frees):
        """Test leaving 'going' frees a slot"""
        assert AttendanceStateMachine().plan(source, target).frees_capacity is frees

    def test_self_transition_is_noop(self):
        """Test re-affirming a status is a no-op"""
        assert AttendanceStateMachine().plan(GOING, GOING).is_noop is True
        assert AttendanceStateMachine().plan(None, GOING).is_noop is False

    def test_accepts_wire_values(self):
        """Test string statuses are parsed"""
        transition = AttendanceStateMachine().plan("not-going", "going")
        assert transition.source is NOT_GOING
        assert transition.target is GOING

    def test_unknown_status_rejected(self):
        """Test an unknown status is an invalid transition"""
        with pytest.raises(InvalidStatusTransition):
            AttendanceStateMachine().plan(GOING, "attending")

    def test_restricted_table(self):
        """Test a custom table can forbid moves"""
        machine = AttendanceStateMachine({None: frozenset({GOING})})
        machine.plan(None, GOING)

        with pytest.raises(InvalidStatusTransition):
            machine.plan(None, MAYBE)
        with pytest.raises(InvalidStatusTransition):
            machine.plan(GOING, MAYBE)

    def test_empty_table_forbids_everything(self):
        """Test an empty table is kept rather than replaced by the default"""
        machine = AttendanceStateMachine(transitions={})

        with pytest.raises(InvalidStatusTransition):
            machine.plan(MAYBE, GOING)
        with pytest.raises(InvalidStatusTransition):
            machine.plan(None, GOING)

    def test_frees_on_leave(self):
        """Test only a 'going' attendee frees a slot when leaving"""
        machine = AttendanceStateMachine()
        assert machine.frees_on_leave("going") is True
        assert machine.frees_on_leave("maybe") is False
        assert machine.frees_on_leave(NOT_GOING) is False
