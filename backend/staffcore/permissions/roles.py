# Overview: Staff roles and the default capability grants for each.

from .definitions import Capability


ROLE_STAFF = "staff"
ROLE_CO_ADMIN = "co-admin"

STAFF_ROLES = (ROLE_STAFF, ROLE_CO_ADMIN)

# Fixed allow-list: never granted to anyone but the business owner,
# not configurable per tenant.
OWNER_ONLY_CAPABILITIES = frozenset({
    Capability.MANAGE_BILLING,
    Capability.TRANSFER_OWNERSHIP,
})

DEFAULT_ROLE_PERMISSIONS: dict[str, frozenset[Capability]] = {
    ROLE_STAFF: frozenset({
        Capability.CLOCK_IN,
        Capability.CREATE_JOB_CARDS,
        Capability.MESSAGE_STAFF,
        Capability.VIEW_OWN_ANALYTICS,
    }),
    ROLE_CO_ADMIN: frozenset(c for c in Capability if c not in OWNER_ONLY_CAPABILITIES),
}
