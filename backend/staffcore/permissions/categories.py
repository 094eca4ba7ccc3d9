# Overview: Capability category constants for grouping related capabilities.


class CapabilityCategory:
    """Capability categories for organization and UI display."""
    TIMEKEEPING = "TIMEKEEPING"
    JOBS = "JOBS"
    COMMUNICATIONS = "COMMUNICATIONS"
    OPERATIONS = "OPERATIONS"
    ANALYTICS = "ANALYTICS"
    STAFF = "STAFF"
    OWNERSHIP = "OWNERSHIP"
