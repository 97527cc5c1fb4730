"""
Type-safe domain values shared by the quota and attendance code
Uses dataclasses and enums for better type safety and IDE support
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Union

from src.errors import InvalidResourceType, InvalidRole, InvalidStatusTransition


class Role(str, Enum):
    """Account role"""
    USER = "user"
    PREMIUM = "premium"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Union[str, "Role"]) -> "Role":
        try:
            return cls(value)
        except ValueError:
            raise InvalidRole(f"Unknown role: {value!r}", role=str(value)) from None


class ResourceType(str, Enum):
    """Resource types that count against a user's quota"""
    TASK = "task"
    EVENT = "event"
    CONTACT = "contact"
    SHOPPING_LIST = "shoppingList"
    CATEGORY = "category"

    @property
    def plural(self) -> str:
        return _PLURALS[self]

    @property
    def usage_column(self) -> str:
        """Name of the users column holding this counter"""
        return _USAGE_COLUMNS[self]

    @classmethod
    def parse(cls, value: Union[str, "ResourceType"]) -> "ResourceType":
        """Accept both the singular name ("task") and the plural one ("tasks")"""
        if isinstance(value, cls):
            return value
        for resource_type in cls:
            if value in (resource_type.value, resource_type.plural):
                return resource_type
        raise InvalidResourceType(
            f"Unknown resource type: {value!r}", resource_type=str(value)
        )


_PLURALS = {
    ResourceType.TASK: "tasks",
    ResourceType.EVENT: "events",
    ResourceType.CONTACT: "contacts",
    ResourceType.SHOPPING_LIST: "shoppingLists",
    ResourceType.CATEGORY: "categories",
}

_USAGE_COLUMNS = {
    ResourceType.TASK: "usage_task",
    ResourceType.EVENT: "usage_event",
    ResourceType.CONTACT: "usage_contact",
    ResourceType.SHOPPING_LIST: "usage_shopping_list",
    ResourceType.CATEGORY: "usage_category",
}

# Accepted by reset operations in place of a single resource type
ALL_RESOURCES = "all"


class RsvpStatus(str, Enum):
    """Attendee RSVP status"""
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not-going"

    @classmethod
    def parse(cls, value: Union[str, "RsvpStatus"]) -> "RsvpStatus":
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatusTransition(
                f"Unknown RSVP status: {value!r}", status=str(value)
            ) from None


@dataclass
class UsageStats:
    """Quota snapshot for one user, as reported to administrators"""
    user_id: int
    role: Role
    is_active: bool
    usage: Dict[str, int]
    limits: Dict[str, Union[int, str]]
    can_create: Dict[str, bool]
    premium_features: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "userId": self.user_id,
            "role": self.role.value,
            "isActive": self.is_active,
            "usage": dict(self.usage),
            "limits": dict(self.limits),
            "canCreate": dict(self.can_create),
            "premiumFeatures": dict(self.premium_features),
        }
