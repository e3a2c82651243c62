"""
Abstract Authentication Interface

Password-based accounts for the remote store. One instance serves one
user session and remembers who signed in through it.
"""

from abc import ABC, abstractmethod
from typing import Optional

from subtrack.models.session import Identity


class AuthServiceInterface(ABC):
    """Sign-in / sign-up / sign-out contract."""

    @abstractmethod
    async def get_current_identity(self) -> Optional[Identity]:
        """
        The signed-in identity.

        Returns None when nobody is signed in; that is not an error.
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        """
        Raises:
            AuthenticationError: Unknown email or wrong password
            ServiceError: Backend failure
        """
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> None:
        """
        Register an account. Does not sign in.

        Raises:
            DuplicateError: Email already registered
            ServiceError: Backend failure
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass
