"""Shared API dependencies, the single import point for all routers.

Re-exports the database session and authentication dependencies, and builds
the external collaborators from ``settings`` so tests can override them::

    from digitalsite.api.deps import get_db, get_gateway, get_mailer
"""

from digitalsite.auth.dependencies import get_current_active_user, get_current_user
from digitalsite.billing.gateway import MamoPayClient
from digitalsite.config import Settings, settings
from digitalsite.database import get_db
from digitalsite.notifications.mailer import Mailer


def get_settings() -> Settings:
    return settings


def get_mailer() -> Mailer:
    """SendGrid mailer configured from application settings."""
    return Mailer(settings)


def get_gateway() -> MamoPayClient:
    """MamoPay client configured from application settings."""
    return MamoPayClient(settings)


__all__ = [
    "get_db",
    "get_current_user",
    "get_current_active_user",
    "get_settings",
    "get_mailer",
    "get_gateway",
]
