# Overview: The closed set of capability keys and their definitions.
# Each definition is: (capability, name, description, category)

from enum import Enum

from .categories import CapabilityCategory


class Capability(str, Enum):
    """Every capability a permission map may mention. Nothing else is valid."""

    CLOCK_IN = "clock_in"
    CREATE_JOB_CARDS = "create_job_cards"
    MESSAGE_STAFF = "message_staff"
    VIEW_OWN_ANALYTICS = "view_own_analytics"
    MANAGE_TASKS = "manage_tasks"
    MANAGE_BOOKINGS = "manage_bookings"
    LOG_EARNINGS = "log_earnings"
    VIEW_ANALYTICS = "view_analytics"
    VIEW_WORK_LOGS = "view_work_logs"
    MANAGE_JOB_CARDS = "manage_job_cards"
    MANAGE_STAFF = "manage_staff"
    MANAGE_BILLING = "manage_billing"
    TRANSFER_OWNERSHIP = "transfer_ownership"


# -- TIMEKEEPING --

TIMEKEEPING_CAPABILITIES = [
    (
        Capability.CLOCK_IN,
        "Track Hours",
        "Start and end own work sessions",
        CapabilityCategory.TIMEKEEPING,
    ),
    (
        Capability.VIEW_WORK_LOGS,
        "View Work Logs",
        "View work sessions of all staff in the business",
        CapabilityCategory.TIMEKEEPING,
    ),
    (
        Capability.LOG_EARNINGS,
        "Log Earnings",
        "Record daily earnings and transactions",
        CapabilityCategory.TIMEKEEPING,
    ),
]


# -- JOBS --

JOB_CAPABILITIES = [
    (
        Capability.CREATE_JOB_CARDS,
        "Create Job Cards",
        "Record completed jobs against own staff relation",
        CapabilityCategory.JOBS,
    ),
    (
        Capability.MANAGE_JOB_CARDS,
        "Manage Job Cards",
        "Correct or delete any job card in the business",
        CapabilityCategory.JOBS,
    ),
]


# -- COMMUNICATIONS --

COMMUNICATION_CAPABILITIES = [
    (
        Capability.MESSAGE_STAFF,
        "Message Staff",
        "Send messages to other staff members",
        CapabilityCategory.COMMUNICATIONS,
    ),
]


# -- OPERATIONS --

OPERATION_CAPABILITIES = [
    (
        Capability.MANAGE_TASKS,
        "Manage Tasks",
        "Create and assign tasks",
        CapabilityCategory.OPERATIONS,
    ),
    (
        Capability.MANAGE_BOOKINGS,
        "Manage Bookings",
        "Create and edit bookings",
        CapabilityCategory.OPERATIONS,
    ),
]


# -- ANALYTICS --

ANALYTICS_CAPABILITIES = [
    (
        Capability.VIEW_OWN_ANALYTICS,
        "View Own Analytics",
        "View own performance and earnings",
        CapabilityCategory.ANALYTICS,
    ),
    (
        Capability.VIEW_ANALYTICS,
        "View Analytics",
        "View business-wide reports",
        CapabilityCategory.ANALYTICS,
    ),
]


# -- STAFF --

STAFF_CAPABILITIES = [
    (
        Capability.MANAGE_STAFF,
        "Manage Staff",
        "Invite staff, edit staff permissions and status",
        CapabilityCategory.STAFF,
    ),
]


# -- OWNERSHIP (reserved for the business owner) --

OWNERSHIP_CAPABILITIES = [
    (
        Capability.MANAGE_BILLING,
        "Manage Billing",
        "Change plan and payment details",
        CapabilityCategory.OWNERSHIP,
    ),
    (
        Capability.TRANSFER_OWNERSHIP,
        "Transfer Ownership",
        "Hand the business over to another account",
        CapabilityCategory.OWNERSHIP,
    ),
]


CAPABILITY_DEFINITIONS = (
    TIMEKEEPING_CAPABILITIES
    + JOB_CAPABILITIES
    + COMMUNICATION_CAPABILITIES
    + OPERATION_CAPABILITIES
    + ANALYTICS_CAPABILITIES
    + STAFF_CAPABILITIES
    + OWNERSHIP_CAPABILITIES
)
