# Overview: Request decorators for API routes: identity context and capability gates.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import Business
from .services import permission_service
from .services.identity_service import resolve_identity


def _is_authenticated() -> bool:
    return getattr(g, "identity", None) is not None


def _resolve_business_id(identity) -> str | None:
    """
    Tenant for this request.

    Staff carry their business in the identity context. Owners may name one
    of their businesses with X-Business-Id, otherwise the one they own.
    Ownership is re-checked by the permission engine, so a forged header
    only ever narrows access.
    """
    if identity.business_id:
        return identity.business_id
    owned = db.session.query(Business.id).filter_by(
        owner_identity_id=identity.identity_id,
    ).order_by(Business.created_at.asc()).first()
    return owned[0] if owned else None


def require_identity(f):
    """
    Require an identity context and establish the tenant.

    Sets the following Flask g attributes:
    - g.identity: IdentityContext from the upstream auth collaborator
    - g.business_id: tenant the request acts in (may be None)

    Returns 401 without an identity.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        identity = resolve_identity(request)
        if identity is None:
            return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401

        g.identity = identity
        g.business_id = _resolve_business_id(identity)
        return f(*args, **kwargs)

    return decorated_function


def require_business(f):
    """Require a resolved tenant for the request."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required", "code": "unauthenticated"}), 401
        if not g.business_id:
            return jsonify({"error": "No business context", "code": "permission_denied"}), 403
        return f(*args, **kwargs)

    return decorated_function


def require_capability(feature_key):
    """
    Require a capability in the request's business.

    Denials are recorded in security_events by the permission service and
    rendered as 403 by the app error handler.
    """
    def decorator(f):
        @wraps(f)
        @require_business
        def decorated_function(*args, **kwargs):
            permission_service.require_permission(
                g.identity,
                g.business_id,
                feature_key,
                resource=request.path,
            )
            return f(*args, **kwargs)

        return decorated_function
    return decorator
