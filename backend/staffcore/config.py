# backend/staffcore/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/staffcore.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///staffcore.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Invitations expire this many hours after issue
    INVITATION_TTL_HOURS = int(os.environ.get("INVITATION_TTL_HOURS", "48"))

    # Staff-facing signup page that consumes ?token=
    INVITE_BASE_URL = os.environ.get(
        "INVITE_BASE_URL",
        "http://localhost:5173/auth/staff-invitation",
    )

    # What happens to an active work session when its staff relation is
    # deactivated: "leave_open" or "auto_close"
    INACTIVE_SESSION_POLICY = os.environ.get("INACTIVE_SESSION_POLICY", "leave_open")

    # Callable(request) -> IdentityContext | None. None means header-based.
    IDENTITY_RESOLVER = None

    # Browser origins allowed to call the API, comma-separated
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "").split(",")
        if origin.strip()
    ]
