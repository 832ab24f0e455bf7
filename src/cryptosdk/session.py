"""Session management for the Crypto SDK."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from .errors import BackendError, InvalidArgumentError, NoActiveSessionError
from .types import Session

if TYPE_CHECKING:
    from .backend import Backend

logger = logging.getLogger("cryptosdk")


class SessionManager:
    """Holds the active authentication token.

    Session creation is serialized; the token swap is atomic. A failed
    authentication leaves any existing session in place.
    """

    def __init__(self, backend: Backend) -> None:
        self._backend = backend
        self._session: Session | None = None
        self._lock = threading.Lock()

    @property
    def has_session(self) -> bool:
        return self._session is not None

    def create_session(self, identity: str, secret: str) -> str:
        """Authenticate with the backend and replace the active session.

        Args:
            identity: User or application identity.
            secret: The identity's secret.

        Returns:
            The new session token.

        Raises:
            InvalidArgumentError: If identity or secret is empty.
            BackendError: If authentication fails or returns no token.
        """
        if not identity:
            raise InvalidArgumentError("Identity cannot be empty")
        if not secret:
            raise InvalidArgumentError("Secret cannot be empty")

        with self._lock:
            token = self._backend.authenticate(identity, secret)
            if not token:
                raise BackendError("Backend returned an empty session token")
            self._session = Session(token=token, endpoint=self._backend.endpoint)

        logger.info("Session created for %r at %s", identity, self._backend.endpoint)
        return token

    def current_session(self) -> Session:
        """Return the active session.

        Raises:
            NoActiveSessionError: If no session has been created.
        """
        session = self._session
        if session is None:
            raise NoActiveSessionError("No active session, call create_session() first")
        return session

    def current_token(self) -> str:
        """Return the active session token.

        Raises:
            NoActiveSessionError: If no session has been created.
        """
        return self.current_session().token

    def clear(self) -> None:
        """Drop the active session."""
        with self._lock:
            self._session = None
