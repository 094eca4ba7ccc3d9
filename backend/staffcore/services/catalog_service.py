# Overview: Read-only access to the external job catalog.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Job


@dataclass(frozen=True)
class JobInfo:
    job_id: str
    business_id: str
    name: str
    default_duration: int | None
    default_price: Decimal | None

    def to_dict(self) -> dict:
        return {
            "id": self.job_id,
            "business_id": self.business_id,
            "name": self.name,
            "default_duration": self.default_duration,
            "default_price": f"{self.default_price:.2f}" if self.default_price is not None else None,
        }


class JobCatalog:
    """Interface: job_id -> JobInfo. Implementations never write."""

    def get_job(self, job_id: str) -> JobInfo | None:
        raise NotImplementedError


class SqlJobCatalog(JobCatalog):
    """Catalog backed by the jobs table in the same database."""

    def get_job(self, job_id: str) -> JobInfo | None:
        job = db.session.get(Job, job_id)
        if job is None:
            return None
        return JobInfo(
            job_id=job.id,
            business_id=job.business_id,
            name=job.name,
            default_duration=job.default_duration,
            default_price=job.default_price,
        )


def get_catalog() -> JobCatalog:
    return current_app.extensions["job_catalog"]


def get_job(job_id: str) -> JobInfo | None:
    return get_catalog().get_job(job_id)
