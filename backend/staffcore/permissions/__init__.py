# Overview: Capability system package.
# Re-exports all public APIs for short imports.

from .categories import CapabilityCategory
from .definitions import (
    Capability,
    CAPABILITY_DEFINITIONS,
    TIMEKEEPING_CAPABILITIES,
    JOB_CAPABILITIES,
    COMMUNICATION_CAPABILITIES,
    OPERATION_CAPABILITIES,
    ANALYTICS_CAPABILITIES,
    STAFF_CAPABILITIES,
    OWNERSHIP_CAPABILITIES,
)
from .roles import (
    ROLE_STAFF,
    ROLE_CO_ADMIN,
    STAFF_ROLES,
    OWNER_ONLY_CAPABILITIES,
    DEFAULT_ROLE_PERMISSIONS,
)
from .helpers import (
    get_all_capability_keys,
    get_capabilities_by_category,
    get_capability_definition,
    parse_capability,
    validate_role,
    validate_permission_map,
    default_permission_map,
    build_permission_map,
)

__all__ = [
    "CapabilityCategory",
    "Capability",
    "CAPABILITY_DEFINITIONS",
    "TIMEKEEPING_CAPABILITIES",
    "JOB_CAPABILITIES",
    "COMMUNICATION_CAPABILITIES",
    "OPERATION_CAPABILITIES",
    "ANALYTICS_CAPABILITIES",
    "STAFF_CAPABILITIES",
    "OWNERSHIP_CAPABILITIES",
    "ROLE_STAFF",
    "ROLE_CO_ADMIN",
    "STAFF_ROLES",
    "OWNER_ONLY_CAPABILITIES",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_capability_keys",
    "get_capabilities_by_category",
    "get_capability_definition",
    "parse_capability",
    "validate_role",
    "validate_permission_map",
    "default_permission_map",
    "build_permission_map",
]
