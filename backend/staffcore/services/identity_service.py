# Overview: Identity context supplied by the upstream authentication collaborator.

"""
Identity Context

WHY: This service never authenticates credentials. An upstream gateway does,
and hands us (identity_id, business_id_if_staff, is_owner) on every call.

The default resolver reads trusted headers set by that gateway. Deployments
with a different transport install their own callable under
app.config["IDENTITY_RESOLVER"].
"""

from dataclasses import dataclass

from flask import current_app


IDENTITY_HEADER = "X-Identity-Id"
BUSINESS_HEADER = "X-Business-Id"
OWNER_HEADER = "X-Is-Owner"


@dataclass(frozen=True)
class IdentityContext:
    """
    Authenticated caller.

    business_id is only set for staff members (the tenant they belong to);
    owners act on the business whose owner_identity_id matches identity_id.
    """
    identity_id: str
    business_id: str | None = None
    is_owner: bool = False


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


def identity_from_headers(request) -> IdentityContext | None:
    identity_id = (request.headers.get(IDENTITY_HEADER) or "").strip()
    if not identity_id:
        return None
    business_id = (request.headers.get(BUSINESS_HEADER) or "").strip() or None
    return IdentityContext(
        identity_id=identity_id,
        business_id=business_id,
        is_owner=_truthy(request.headers.get(OWNER_HEADER)),
    )


def resolve_identity(request) -> IdentityContext | None:
    """Resolve the caller for a request, or None when unauthenticated."""
    resolver = current_app.config.get("IDENTITY_RESOLVER") or identity_from_headers
    return resolver(request)
