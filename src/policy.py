"""
Role-based feature policy
Maps an account role to per-resource-type limits and premium feature flags
"""

from typing import Dict, Optional, Union

from src.config import get_config
from src.models import ResourceType, Role

# Items of each resource type a 'user' role account may own
FREE_TIER_LIMIT = 5

# Roles whose resources are never counted
UNLIMITED_ROLES = frozenset({Role.PREMIUM, Role.ADMIN})


class RoleFeaturePolicy:
    """
    Pure lookup of what a role may do

    A limit of None means unlimited.
    """

    def __init__(self, free_tier_limit: int = FREE_TIER_LIMIT):
        self.free_tier_limit = free_tier_limit

    def is_unlimited(self, role: Union[str, Role]) -> bool:
        return Role.parse(role) in UNLIMITED_ROLES

    def limit_for(
        self, role: Union[str, Role], resource_type: Union[str, ResourceType]
    ) -> Optional[int]:
        """
        Get the number of items of resource_type the role may own

        Raises:
            InvalidResourceType: If resource_type is unknown
            InvalidRole: If role is unknown
        """
        ResourceType.parse(resource_type)
        if self.is_unlimited(role):
            return None
        return self.free_tier_limit

    def limits(self, role: Union[str, Role]) -> Dict[ResourceType, Optional[int]]:
        """Limits for every resource type"""
        return {
            resource_type: self.limit_for(role, resource_type)
            for resource_type in ResourceType
        }

    def premium_features(self, role: Union[str, Role]) -> Dict[str, bool]:
        """
        Feature flags in the account API's shape, e.g. {"unlimitedTasks": True}
        """
        unlimited = self.is_unlimited(role)
        return {
            f"unlimited{resource_type.plural[0].upper()}{resource_type.plural[1:]}": unlimited
            for resource_type in ResourceType
        }


# Singleton instance
_policy: Optional[RoleFeaturePolicy] = None


def get_policy() -> RoleFeaturePolicy:
    """Get the policy configured from settings, rebuilt after a config reload"""
    global _policy
    free_tier_limit = get_config().free_tier_limit
    if _policy is None or _policy.free_tier_limit != free_tier_limit:
        _policy = RoleFeaturePolicy(free_tier_limit)
    return _policy
