from .tenancy import Business, Job
from .staff import Invitation, StaffRelation
from .worklogs import WorkSession, JobCard
from .security import SecurityEvent

__all__ = [
    'Business', 'Job',
    'Invitation', 'StaffRelation',
    'WorkSession', 'JobCard',
    'SecurityEvent',
]
