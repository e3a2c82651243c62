"""Account authentication services."""

from subtrack.services.auth.interface import AuthServiceInterface
from subtrack.services.auth.google_sheets import GoogleSheetsAuthService

__all__ = [
    "AuthServiceInterface",
    "GoogleSheetsAuthService",
]
