# Overview: Utility functions for capability lookups and permission-map validation.

from ..errors import ValidationError
from .definitions import Capability, CAPABILITY_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS, OWNER_ONLY_CAPABILITIES, STAFF_ROLES


def get_all_capability_keys():
    """Get list of all capability keys."""
    return [c.value for c in Capability]


def get_capabilities_by_category(category):
    """Get all capability definitions in a category."""
    return [cap for cap in CAPABILITY_DEFINITIONS if cap[3] == category]


def get_capability_definition(key):
    """Get full definition for a capability key."""
    for cap in CAPABILITY_DEFINITIONS:
        if cap[0].value == key:
            return {
                "key": cap[0].value,
                "name": cap[1],
                "description": cap[2],
                "category": cap[3],
            }
    return None


def parse_capability(key) -> Capability | None:
    """Capability for a key, or None when the key is not in the closed set."""
    if isinstance(key, Capability):
        return key
    try:
        return Capability(key)
    except ValueError:
        return None


def validate_role(role) -> str:
    if role not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(STAFF_ROLES)}")
    return role


def validate_permission_map(mapping) -> dict[str, bool]:
    """
    Validate a capability map supplied by a caller.

    Unknown keys and non-boolean values are rejected here, at input time,
    so they never reach storage as silently-false strings.
    """
    if mapping is None:
        return {}
    if not isinstance(mapping, dict):
        raise ValidationError("permissions must be an object of capability -> bool")

    cleaned: dict[str, bool] = {}
    unknown = []
    for key, value in mapping.items():
        cap = parse_capability(key)
        if cap is None:
            unknown.append(str(key))
            continue
        if not isinstance(value, bool):
            raise ValidationError(f"permission '{cap.value}' must be true or false")
        if value and cap in OWNER_ONLY_CAPABILITIES:
            raise ValidationError(f"'{cap.value}' is reserved for the business owner")
        cleaned[cap.value] = value

    if unknown:
        raise ValidationError(f"Unknown capabilities: {', '.join(sorted(unknown))}")
    return cleaned


def default_permission_map(role: str) -> dict[str, bool]:
    """Full capability map for a role with every key present."""
    granted = DEFAULT_ROLE_PERMISSIONS[validate_role(role)]
    return {c.value: c in granted for c in Capability}


def build_permission_map(role: str, overrides=None) -> dict[str, bool]:
    """Role defaults with validated overrides applied on top."""
    permissions = default_permission_map(role)
    permissions.update(validate_permission_map(overrides))
    return permissions
