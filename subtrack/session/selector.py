"""
Mode Selector

Resolves the session once at bootstrap and hands out the one store
that session may use. Nothing else in the app branches on guest mode.

Resolution order:
1. Guest flag set in local storage -> Guest (wins even if an
   account is also signed in)
2. Auth service has a signed-in identity -> Authenticated
3. Otherwise -> Unknown (caller sends the user to the login screen)
"""

from typing import Optional

import structlog

from subtrack.models.session import Session, SessionMode
from subtrack.services.auth import AuthServiceInterface
from subtrack.services.storage import (
    EntryStoreInterface,
    LocalEntryStore,
    NotAuthenticatedError,
    ServiceError,
)


logger = structlog.get_logger(__name__)


class ModeSelector:
    """
    Owns the mode decision and the mapping from session to store.

    The remote store and auth service are optional: without them the
    app still works in guest mode.
    """

    def __init__(
        self,
        local_store: LocalEntryStore,
        remote_store: Optional[EntryStoreInterface] = None,
        auth_service: Optional[AuthServiceInterface] = None,
    ):
        self._local_store = local_store
        self._remote_store = remote_store
        self._auth_service = auth_service

    @property
    def remote_available(self) -> bool:
        return self._remote_store is not None and self._auth_service is not None

    def _require_auth(self) -> AuthServiceInterface:
        if self._auth_service is None:
            raise ServiceError("Account sign-in is not configured")
        return self._auth_service

    async def bootstrap(self) -> Session:
        """Resolve the mode for a new session."""
        if self._local_store.is_guest_mode():
            return Session.guest()

        if self._auth_service is not None:
            identity = await self._auth_service.get_current_identity()
            if identity is not None:
                return Session.authenticated(identity)

        return Session.unknown()

    def store_for(self, session: Session) -> EntryStoreInterface:
        """The store every CRUD call of this session goes to."""
        if session.mode == SessionMode.GUEST:
            return self._local_store

        if session.mode == SessionMode.AUTHENTICATED:
            if self._remote_store is None:
                raise ServiceError("Remote store is not configured")
            return self._remote_store

        raise NotAuthenticatedError("Session has no resolved mode")

    async def enter_guest_mode(self) -> Session:
        self._local_store.enter_guest_mode()
        logger.info("session_resolved", mode=SessionMode.GUEST.value)
        return Session.guest()

    async def sign_in(self, email: str, password: str) -> Session:
        identity = await self._require_auth().sign_in(email, password)
        logger.info("session_resolved", mode=SessionMode.AUTHENTICATED.value, user_id=identity.id)
        return Session.authenticated(identity)

    async def sign_up(self, email: str, password: str) -> None:
        await self._require_auth().sign_up(email, password)

    async def exit_session(self, session: Session) -> Session:
        """
        Leave the current mode.

        Leaving guest mode deletes the guest collection. The returned
        session is always Unknown.
        """
        if session.mode == SessionMode.GUEST:
            self._local_store.exit_guest_mode()
        elif session.mode == SessionMode.AUTHENTICATED and self._auth_service is not None:
            await self._auth_service.sign_out()

        logger.info("session_exited", previous_mode=session.mode.value)
        return Session.unknown()
