"""Client-side view of the signed-in session."""

from __future__ import annotations

from typing import Callable

from shared.enums import AuthEvent
from shared.models import AuthSessionResponse
from shared.utils import setup_logging

logger = setup_logging("client-auth")

AuthListener = Callable[[AuthEvent, AuthSessionResponse | None], None]


class AuthSubscription:
    def __init__(self, state: "AuthState", listener: AuthListener) -> None:
        self._state = state
        self._listener = listener

    def unsubscribe(self) -> None:
        self._state._remove_listener(self._listener)


class AuthState:
    """Holds the current session and notifies subscribers when it changes."""

    def __init__(self) -> None:
        self.session: AuthSessionResponse | None = None
        self._listeners: list[AuthListener] = []

    @property
    def is_signed_in(self) -> bool:
        return self.session is not None

    @property
    def user_id(self) -> str | None:
        return self.session.user.id if self.session else None

    def auth_headers(self) -> dict[str, str]:
        if self.session is None:
            return {}
        return {"Authorization": f"Bearer {self.session.access_token}"}

    def on_auth_state_change(self, listener: AuthListener) -> AuthSubscription:
        self._listeners.append(listener)
        return AuthSubscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self.session)

    def set_session(self, session: AuthSessionResponse) -> None:
        self.session = session
        logger.info(f"Signed in as {session.user.email}")
        self._emit(AuthEvent.SIGNED_IN)

    def clear(self) -> None:
        if self.session is None:
            return
        self.session = None
        logger.info("Signed out")
        self._emit(AuthEvent.SIGNED_OUT)
