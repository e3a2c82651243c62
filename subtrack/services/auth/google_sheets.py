"""
Google Sheets Authentication

Accounts live in the "Users" worksheet next to the subscriptions.
Only bcrypt hashes are stored, never the password itself.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

import bcrypt

from subtrack.config import get_settings
from subtrack.models.entry import utcnow
from subtrack.models.session import Identity
from subtrack.services.auth.interface import AuthServiceInterface
from subtrack.services.storage.google_sheets import GoogleSheetsClient
from subtrack.services.storage.interface import (
    AuthenticationError,
    DuplicateError,
    ServiceError,
)
from subtrack.validation.validator import MAX_PASSWORD_BYTES


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class GoogleSheetsAuthService(AuthServiceInterface):
    """
    Auth over the Users worksheet.

    The signed-in identity is held on the instance, so create one
    instance per user session.
    """

    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        bcrypt_rounds: Optional[int] = None,
    ):
        self._client = client or GoogleSheetsClient()
        self._rounds = bcrypt_rounds or get_settings().app.bcrypt_rounds
        self._current: Optional[Identity] = None

    def _find_user_row(self, email: str) -> Optional[list]:
        try:
            sheet = self._client.get_users_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Failed to read accounts: {e}")

        wanted = _normalize_email(email)
        for row in all_rows:
            if len(row) >= 4 and _normalize_email(row[1]) == wanted:
                return row
        return None

    async def get_current_identity(self) -> Optional[Identity]:
        return self._current

    async def sign_in(self, email: str, password: str) -> Identity:
        row = self._find_user_row(email)
        if row is None:
            raise AuthenticationError("Invalid login credentials")

        user_id, stored_email, password_hash, created_at = row[:4]
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            # Longer passwords were never accepted at sign-up
            raise AuthenticationError("Invalid login credentials")
        try:
            matches = bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            raise ServiceError(f"Stored password hash is unreadable: {e}")
        if not matches:
            raise AuthenticationError("Invalid login credentials")

        try:
            identity = Identity(
                id=user_id,
                email=stored_email,
                created_at=datetime.fromisoformat(created_at),
            )
        except ValueError as e:
            raise ServiceError(f"Account row for {stored_email} is malformed: {e}")

        self._current = identity
        return self._current

    async def sign_up(self, email: str, password: str) -> None:
        if self._find_user_row(email) is not None:
            raise DuplicateError("User already registered")

        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ServiceError(f"Password exceeds {MAX_PASSWORD_BYTES} bytes")
        try:
            password_hash = bcrypt.hashpw(
                encoded, bcrypt.gensalt(rounds=self._rounds)
            ).decode("utf-8")
        except ValueError as e:
            raise ServiceError(f"Password could not be hashed: {e}")
        row = [
            str(uuid4()),
            _normalize_email(email),
            password_hash,
            utcnow().isoformat(),
        ]
        try:
            sheet = self._client.get_users_sheet()
            sheet.append_row(row, value_input_option="RAW")
        except ServiceError:
            raise
        except Exception as e:
            raise ServiceError(f"Failed to register account: {e}")

    async def sign_out(self) -> None:
        self._current = None
