"""Auth store: bearer token and user profile, persisted on device."""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from ..api.client import ApiClient, AuthenticationError, CancelToken
from ..state import HANDLED_ERRORS, ActionResult, Store, error_message
from ..storage import KeyValueStorage
from .api import AuthApi
from .schemas import AuthResponse, User, validate_login, validate_registration

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
USER_KEY = "auth_user"

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please log in again."


@dataclass(frozen=True)
class AuthState:
    """Snapshot of the auth store."""

    token: Optional[str] = None
    user: Optional[User] = None
    checked: bool = False  # check_auth() has run
    loading: bool = False
    error: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


class AuthStore(Store[AuthState]):
    """Owns the session token and the signed-in user."""

    def __init__(self, api: AuthApi, storage: KeyValueStorage):
        super().__init__(AuthState())
        self.api = api
        self.storage = storage

    def bind(self, client: ApiClient) -> None:
        """Make the client read its token here and log out on 401."""
        client.token_provider = self.get_token
        client.on_unauthorized = self.handle_unauthorized

    def get_token(self) -> Optional[str]:
        return self.state.token

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _persist(self, token: str, user: User) -> None:
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(USER_KEY, user.model_dump(mode="json", by_alias=True))

    def _clear(self) -> None:
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)

    def check_auth(self) -> bool:
        """Rehydrate token and user from storage on cold start."""
        token = self.storage.get(TOKEN_KEY)
        raw_user = self.storage.get(USER_KEY)

        user = None
        if raw_user:
            try:
                user = User.model_validate(raw_user)
            except ValidationError:
                logger.warning("Discarding unreadable stored user profile")

        if token and user:
            self.set_state(token=token, user=user, checked=True)
            return True

        if token or raw_user:
            self._clear()
        self.set_state(token=None, user=None, checked=True)
        return False

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _authenticate(self, call, action: str) -> ActionResult:
        self.set_state(loading=True, error=None)
        try:
            response: AuthResponse = call()
        except HANDLED_ERRORS as e:
            message = error_message(e)
            logger.info("%s failed: %s", action, message)
            self.set_state(loading=False, error=message)
            return ActionResult.fail(message)

        self._persist(response.token, response.user)
        self.set_state(token=response.token, user=response.user, loading=False, checked=True)
        logger.info("%s succeeded for %s", action, response.user.username)
        return ActionResult.ok(response.user)

    def login(
        self, email: str, password: str, cancel: Optional[CancelToken] = None
    ) -> ActionResult:
        """Log in with email (or username) and password."""
        problem = validate_login(email, password)
        if problem:
            self.set_state(error=problem)
            return ActionResult.fail(problem)

        return self._authenticate(
            lambda: self.api.login(email.strip(), password, cancel=cancel), "Login"
        )

    def register(
        self,
        username: str,
        email: str,
        password: str,
        cancel: Optional[CancelToken] = None,
    ) -> ActionResult:
        """Create an account and log in."""
        problem = validate_registration(username, email, password)
        if problem:
            self.set_state(error=problem)
            return ActionResult.fail(problem)

        return self._authenticate(
            lambda: self.api.register(username.strip(), email.strip(), password, cancel=cancel),
            "Register",
        )

    def refresh_user(self, cancel: Optional[CancelToken] = None) -> ActionResult:
        """Reload the profile of the signed-in user."""
        if not self.state.token:
            return ActionResult.fail("Not logged in")

        try:
            user = self.api.me(cancel=cancel)
        except AuthenticationError:
            # handle_unauthorized has already cleared the session
            return ActionResult.fail(SESSION_EXPIRED_MESSAGE)
        except HANDLED_ERRORS as e:
            message = error_message(e)
            self.set_state(error=message)
            return ActionResult.fail(message)

        self.storage.set(USER_KEY, user.model_dump(mode="json", by_alias=True))
        self.set_state(user=user)
        return ActionResult.ok(user)

    def logout(self) -> None:
        self._clear()
        self.set_state(token=None, user=None, error=None)
        logger.info("Logged out")

    def handle_unauthorized(self) -> None:
        """Drop the session after the backend rejected the token."""
        if self.state.token is None:
            return
        self._clear()
        self.set_state(token=None, user=None, error=SESSION_EXPIRED_MESSAGE)
        logger.warning("Token rejected by server; session cleared")
