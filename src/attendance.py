"""
RSVP status transitions for a single (event, user) pair

The transition table is explicit; the only decision it carries beyond
bookkeeping is whether a move has to be admitted against event capacity.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Union

from src.errors import InvalidStatusTransition
from src.models import RsvpStatus

# None stands for "no attendee record yet"
TRANSITIONS: Dict[Optional[RsvpStatus], FrozenSet[RsvpStatus]] = {
    None: frozenset(RsvpStatus),
    RsvpStatus.GOING: frozenset(RsvpStatus),
    RsvpStatus.MAYBE: frozenset(RsvpStatus),
    RsvpStatus.NOT_GOING: frozenset(RsvpStatus),
}


@dataclass(frozen=True)
class Transition:
    """A planned status change"""

    source: Optional[RsvpStatus]
    target: RsvpStatus

    @property
    def is_noop(self) -> bool:
        return self.source is self.target

    @property
    def needs_capacity(self) -> bool:
        """Moving into 'going' from anything else takes a capacity unit"""
        return self.target is RsvpStatus.GOING and self.source is not RsvpStatus.GOING

    @property
    def frees_capacity(self) -> bool:
        return self.source is RsvpStatus.GOING and self.target is not RsvpStatus.GOING


class AttendanceStateMachine:
    """Validates RSVP transitions and classifies their capacity effect"""

    def __init__(self, transitions: Optional[Dict] = None):
        self.transitions = TRANSITIONS if transitions is None else transitions

    def plan(
        self,
        source: Union[str, RsvpStatus, None],
        target: Union[str, RsvpStatus],
    ) -> Transition:
        """
        Plan a move from source (None for a first RSVP) to target

        Raises:
            InvalidStatusTransition: Unknown status or a move the table forbids
        """
        source = RsvpStatus.parse(source) if source is not None else None
        target = RsvpStatus.parse(target)

        if target not in self.transitions.get(source, frozenset()):
            raise InvalidStatusTransition(
                f"Cannot change RSVP from {source.value if source else 'none'} to {target.value}",
                source=source.value if source else None,
                target=target.value,
            )
        return Transition(source, target)

    def frees_on_leave(self, source: Union[str, RsvpStatus]) -> bool:
        """Whether removing an attendee in state source frees a capacity unit"""
        return RsvpStatus.parse(source) is RsvpStatus.GOING
