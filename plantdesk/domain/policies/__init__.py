"""This module manages role-based write policies."""
from .role_policy import RoleAccess, RolePolicy, DEFAULT_ROLE_POLICY
from .policy_provider import PolicyProvider
from .default_policy_provider import DefaultPolicyProvider
from .fake_policy_provider import FakePolicyProvider
