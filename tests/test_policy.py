"""
Tests for role-based feature policy
"""

import pytest

from src.config import reload_config
from src.errors import InvalidResourceType, InvalidRole
from src.models import ResourceType, Role
from src.policy import FREE_TIER_LIMIT, RoleFeaturePolicy, get_policy


class TestRoleFeaturePolicy:
    """Tests for RoleFeaturePolicy"""

    @pytest.mark.parametrize("resource_type", list(ResourceType))
    def test_user_role_has_fixed_limit(self, policy, resource_type):
        """Test 'user' role gets the free tier limit for every type"""
        assert policy.limit_for(Role.USER, resource_type) == 5

    @pytest.mark.parametrize("role", ["premium", "admin"])
    @pytest.mark.parametrize("resource_type", list(ResourceType))
    def test_privileged_roles_unlimited(self, policy, role, resource_type):
        """Test premium and admin are unlimited"""
        assert policy.limit_for(role, resource_type) is None
        assert policy.is_unlimited(role) is True

    def test_accepts_plain_strings(self, policy):
        """Test role and type may be passed as strings"""
        assert policy.limit_for("user", "shoppingList") == 5

    def test_unknown_resource_type_fails_fast(self, policy):
        """Test unknown resource type raises InvalidResourceType"""
        with pytest.raises(InvalidResourceType):
            policy.limit_for("user", "notes")

    def test_unknown_role_fails_fast(self, policy):
        """Test unknown role raises InvalidRole"""
        with pytest.raises(InvalidRole):
            policy.limit_for("guest", "task")

    def test_custom_limit(self):
        """Test free tier limit is configurable"""
        assert RoleFeaturePolicy(free_tier_limit=2).limit_for("user", "task") == 2

    def test_limits_for_all_types(self, policy):
        """Test limits() covers every resource type"""
        assert policy.limits("user") == {rt: 5 for rt in ResourceType}
        assert policy.limits("admin") == {rt: None for rt in ResourceType}

    def test_premium_features_for_premium(self, policy):
        """Test premium role unlocks every feature flag"""
        assert policy.premium_features("premium") == {
            "unlimitedTasks": True,
            "unlimitedEvents": True,
            "unlimitedContacts": True,
            "unlimitedShoppingLists": True,
            "unlimitedCategories": True,
        }

    def test_premium_features_for_user(self, policy):
        """Test 'user' role has no feature flag set"""
        assert not any(policy.premium_features("user").values())

    def test_get_policy_uses_default_limit(self):
        """Test configured policy defaults to the free tier limit"""
        assert get_policy().free_tier_limit == FREE_TIER_LIMIT

    def test_get_policy_follows_reloaded_config(self, monkeypatch):
        """Test a config reload changes the limit get_policy hands out"""
        monkeypatch.setenv("FREE_TIER_LIMIT", "5")
        try:
            reload_config()
            assert get_policy().limit_for("user", "task") == 5

            monkeypatch.setenv("FREE_TIER_LIMIT", "2")
            reload_config()
            assert get_policy().limit_for("user", "task") == 2
        finally:
            monkeypatch.delenv("FREE_TIER_LIMIT")
            reload_config()
