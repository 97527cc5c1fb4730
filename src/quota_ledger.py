"""
Per-user resource quota accounting

Every counter change is a single conditional UPDATE on the user's row, so the
limit check and the increment cannot be separated by a concurrent writer.
"""

import logging
from typing import Dict, Optional, Union

from sqlalchemy import update
from sqlmodel import Session

from src.database import atomic
from src.db_models import User
from src.errors import QuotaExceeded, UserNotFound
from src.models import ALL_RESOURCES, ResourceType, Role
from src.policy import RoleFeaturePolicy, get_policy

logger = logging.getLogger(__name__)


class QuotaLedger:
    """Reserve and release per-resource-type usage units for a user"""

    def __init__(self, session: Session, policy: Optional[RoleFeaturePolicy] = None):
        self.session = session
        self.policy = policy or get_policy()

    def _get_user(self, user_id: int) -> User:
        user = self.session.get(User, user_id, populate_existing=True)
        if user is None:
            raise UserNotFound(f"User {user_id} does not exist", user_id=user_id)
        return user

    def get_usage(self, user_id: int) -> Dict[ResourceType, int]:
        """Current counters for every resource type"""
        return self._get_user(user_id).usage

    def can_reserve(
        self, user_id: int, resource_type: Union[str, ResourceType]
    ) -> bool:
        """
        Check whether a reservation would currently succeed

        Advisory only: the answer may be stale by the time reserve() runs.
        """
        resource_type = ResourceType.parse(resource_type)
        user = self._get_user(user_id)
        limit = self.policy.limit_for(user.role, resource_type)
        if limit is None:
            return True
        return user.usage[resource_type] < limit

    def reserve(self, user_id: int, resource_type: Union[str, ResourceType]) -> None:
        """
        Take one unit of the user's quota for resource_type

        Raises:
            QuotaExceeded: If the limit is reached at the moment of the update
            UserNotFound: If the user does not exist
        """
        resource_type = ResourceType.parse(resource_type)
        limit = self.policy.limit_for(Role.USER, resource_type)
        column = getattr(User, resource_type.usage_column)

        with atomic(self.session):
            statement = (
                update(User)
                .where(
                    User.user_id == user_id,
                    User.role == Role.USER.value,
                    column < limit,
                )
                .values({resource_type.usage_column: column + 1})
                .execution_options(synchronize_session=False)
            )
            if self.session.exec(statement).rowcount == 1:
                logger.info(f"User {user_id} reserved one {resource_type.value}")
                return

            # Nothing updated: privileged role, limit reached, or no such user
            user = self._get_user(user_id)
            if self.policy.is_unlimited(user.role):
                return

            logger.warning(
                f"User {user_id} reached the {resource_type.value} limit ({limit})"
            )
            raise QuotaExceeded(
                f"You have reached the limit of {limit} {resource_type.plural}",
                user_id=user_id,
                resource_type=resource_type.value,
                limit=limit,
            )

    def release(self, user_id: int, resource_type: Union[str, ResourceType]) -> None:
        """
        Return one unit of the user's quota for resource_type

        Clamps at zero and leaves privileged roles untouched.
        """
        resource_type = ResourceType.parse(resource_type)
        column = getattr(User, resource_type.usage_column)

        with atomic(self.session):
            statement = (
                update(User)
                .where(
                    User.user_id == user_id,
                    User.role == Role.USER.value,
                    column > 0,
                )
                .values({resource_type.usage_column: column - 1})
                .execution_options(synchronize_session=False)
            )
            released = self.session.exec(statement).rowcount == 1

        if released:
            logger.info(f"User {user_id} released one {resource_type.value}")

    def reset_usage(
        self, user_id: int, resource_type: Union[str, ResourceType] = ALL_RESOURCES
    ) -> None:
        """
        Set the named counter, or every counter for "all", to zero

        Raises:
            UserNotFound: If the user does not exist
            InvalidResourceType: If resource_type is neither a type nor "all"
        """
        if resource_type == ALL_RESOURCES:
            columns = [rt.usage_column for rt in ResourceType]
        else:
            columns = [ResourceType.parse(resource_type).usage_column]

        with atomic(self.session):
            statement = (
                update(User)
                .where(User.user_id == user_id)
                .values({column: 0 for column in columns})
                .execution_options(synchronize_session=False)
            )
            if self.session.exec(statement).rowcount == 0:
                raise UserNotFound(f"User {user_id} does not exist", user_id=user_id)

        logger.info(f"Usage reset for user {user_id}: {', '.join(columns)}")
