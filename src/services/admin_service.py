"""
Administrative quota operations: usage reports, counter resets, role changes
"""

import logging
from typing import Dict, Optional, Union

from sqlmodel import Session

from src.errors import UserNotFound
from src.models import ALL_RESOURCES, ResourceType, Role, UsageStats
from src.policy import RoleFeaturePolicy, get_policy
from src.quota_ledger import QuotaLedger
from src.repositories import UserRepository

logger = logging.getLogger(__name__)


def get_usage_stats(
    session: Session, user_id: int, policy: Optional[RoleFeaturePolicy] = None
) -> UsageStats:
    """
    Build a quota report for a user

    Limits are reported as "unlimited" for privileged roles.
    """
    policy = policy or get_policy()
    user = UserRepository(session).get_user(user_id)
    if user is None:
        raise UserNotFound(f"User {user_id} does not exist", user_id=user_id)

    role = Role.parse(user.role)
    usage = user.usage
    limits = policy.limits(role)

    return UsageStats(
        user_id=user.user_id,
        role=role,
        is_active=user.is_active,
        usage={rt.plural: count for rt, count in usage.items()},
        limits={
            rt.plural: "unlimited" if limit is None else limit
            for rt, limit in limits.items()
        },
        can_create={
            rt.plural: limit is None or usage[rt] < limit
            for rt, limit in limits.items()
        },
        premium_features=policy.premium_features(role),
    )


def reset_user_usage(
    session: Session, user_id: int, reset_type: Union[str, ResourceType] = ALL_RESOURCES
) -> Dict[str, int]:
    """
    Reset one counter ("tasks", "task", ...) or all of them ("all")

    Returns:
        Dict mapping plural resource names to the counters after the reset
    """
    ledger = QuotaLedger(session)
    ledger.reset_usage(user_id, reset_type)
    return {rt.plural: count for rt, count in ledger.get_usage(user_id).items()}


def change_role(session: Session, user_id: int, role: Union[str, Role]) -> Dict[str, bool]:
    """
    Change a user's role

    Counters are left as they are: a downgraded account keeps the usage it
    accumulated as 'user' and starts counting again from there.

    Returns:
        The premium feature flags for the new role
    """
    user = UserRepository(session).set_role(user_id, role)
    logger.info(f"User {user_id} role changed to {user.role}")
    return get_policy().premium_features(user.role)
