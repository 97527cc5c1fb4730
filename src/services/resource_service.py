"""
Quota-aware creation and deletion of user-owned resources

The resource document itself is written by the caller's persist/remove
callable; this module only brackets it with the quota reservation.
"""
import logging
from typing import Callable, Optional, TypeVar, Union

from sqlmodel import Session

from src.database import retry_on_conflict
from src.errors import StoreConflict
from src.models import ResourceType
from src.policy import RoleFeaturePolicy
from src.quota_ledger import QuotaLedger

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_owned_resource(
    session: Session,
    user_id: int,
    resource_type: Union[str, ResourceType],
    persist: Callable[[], T],
    policy: Optional[RoleFeaturePolicy] = None,
) -> T:
    """
    Reserve one quota unit, then persist the resource

    If persist raises, the reservation is released (retrying store conflicts)
    and the persist error propagates.

    Raises:
        QuotaExceeded: If the user is at their limit; persist is not called
    """
    resource_type = ResourceType.parse(resource_type)
    ledger = QuotaLedger(session, policy)
    ledger.reserve(user_id, resource_type)

    try:
        return persist()
    except Exception:
        logger.error(
            f"Creating {resource_type.value} for user {user_id} failed, releasing reservation"
        )
        session.rollback()
        try:
            retry_on_conflict(lambda: ledger.release(user_id, resource_type))
        except StoreConflict:
            logger.exception(
                f"Could not release {resource_type.value} reservation for user {user_id}"
            )
        raise


def delete_owned_resource(
    session: Session,
    user_id: int,
    resource_type: Union[str, ResourceType],
    remove: Callable[[], bool],
    policy: Optional[RoleFeaturePolicy] = None,
) -> bool:
    """
    Delete a resource and give its quota unit back

    Args:
        remove: Deletes the document; returns False if nothing was deleted

    Returns:
        bool: Whether a resource was deleted
    """
    resource_type = ResourceType.parse(resource_type)
    if not remove():
        return False

    QuotaLedger(session, policy).release(user_id, resource_type)
    return True
