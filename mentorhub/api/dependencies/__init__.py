"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .auth import get_current_principal, require_admin
from .database import get_db
from .services import (
    get_availability_service,
    get_booking_service,
    get_enrollment_service,
    get_ledger_service,
)

__all__ = [
    # Auth
    "get_current_principal",
    "require_admin",
    # Database
    "get_db",
    # Services
    "get_ledger_service",
    "get_availability_service",
    "get_enrollment_service",
    "get_booking_service",
]
