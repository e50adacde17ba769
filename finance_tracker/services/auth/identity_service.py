"""
Identity Service (Firebase Authentication REST API)

DESIGN DECISION: We talk to the Identity Toolkit REST endpoints with
plain HTTP instead of an admin SDK. The app only needs the four
end-user operations (sign up, sign in, password reset, token refresh)
and the web API key is all they require.

The returned uid is the owner key on every stored record.
"""

import re
from datetime import datetime, timedelta
from typing import MutableMapping, Optional

import requests
import structlog
from pydantic import BaseModel, Field
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finance_tracker.config import IdentitySettings, get_settings
from finance_tracker.models.finance import utc_now


logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6

# UI session keys holding one user's data; cleared when they sign out
USER_STATE_KEYS = ("user", "insights", "receipt_result")


class AuthError(Exception):
    """Base exception for identity service errors."""
    pass


class EmailAlreadyExistsError(AuthError):
    """An account already exists for this email."""
    pass


class InvalidCredentialsError(AuthError):
    """Wrong email/password, unknown user, or disabled account."""
    pass


class WeakPasswordError(AuthError):
    """Password rejected as too weak."""
    pass


class TooManyAttemptsError(AuthError):
    """Identity service is throttling this client."""
    pass


class AuthServiceUnavailableError(AuthError):
    """Identity service could not be reached."""
    pass


# Identity Toolkit error codes -> (exception, message shown to the user)
ERROR_CODES: dict[str, tuple[type, str]] = {
    "EMAIL_EXISTS": (EmailAlreadyExistsError, "An account with this email already exists"),
    "EMAIL_NOT_FOUND": (InvalidCredentialsError, "Invalid email or password"),
    "INVALID_PASSWORD": (InvalidCredentialsError, "Invalid email or password"),
    "INVALID_LOGIN_CREDENTIALS": (InvalidCredentialsError, "Invalid email or password"),
    "USER_DISABLED": (InvalidCredentialsError, "This account has been disabled"),
    "INVALID_EMAIL": (InvalidCredentialsError, "Please enter a valid email address"),
    "WEAK_PASSWORD": (WeakPasswordError, "Password should be at least 6 characters"),
    "TOO_MANY_ATTEMPTS_TRY_LATER": (
        TooManyAttemptsError,
        "Too many attempts. Please try again later",
    ),
    "TOKEN_EXPIRED": (InvalidCredentialsError, "Your session has expired. Please sign in again"),
    "INVALID_REFRESH_TOKEN": (
        InvalidCredentialsError,
        "Your session has expired. Please sign in again",
    ),
}


class UserSession(BaseModel):
    """A signed-in user."""

    uid: str = Field(..., description="Identity service user id")
    email: str
    display_name: Optional[str] = None
    id_token: str
    refresh_token: str
    expires_at: datetime

    @property
    def is_expired(self) -> bool:
        """True a minute before the token actually expires."""
        return utc_now() >= self.expires_at - timedelta(seconds=60)


def clear_user_state(state: MutableMapping) -> None:
    """Drop the signed-in user and everything cached for them."""
    for key in USER_STATE_KEYS:
        state.pop(key, None)


def map_identity_error(payload: dict) -> AuthError:
    """Build the exception for an Identity Toolkit error body."""
    raw = str(payload.get("error", {}).get("message", "")) if isinstance(payload, dict) else ""
    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    code = raw.split(" ")[0].strip() if raw else ""
    exc_type, message = ERROR_CODES.get(code, (AuthError, "Authentication failed"))
    return exc_type(message)


def validate_credentials(email: str, password: str) -> None:
    """
    Check email shape and password length before calling the service.

    Raises:
        InvalidCredentialsError: Malformed email
        WeakPasswordError: Password too short
    """
    if not email or not EMAIL_PATTERN.match(email.strip()):
        raise InvalidCredentialsError("Please enter a valid email address")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(
            f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
        )


class IdentityToolkitAuthService:
    """
    End-user authentication against Firebase Authentication.

    All methods raise AuthError subclasses; network failures surface
    as AuthServiceUnavailableError after retries.
    """

    def __init__(
        self,
        settings: Optional[IdentitySettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self._settings = settings or get_settings().identity
        self._http = session or requests.Session()

    @retry(
        retry=retry_if_exception_type(requests.RequestException),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _send(self, url: str, payload: dict) -> requests.Response:
        return self._http.post(
            url,
            params={"key": self._settings.api_key},
            json=payload,
            timeout=self._settings.request_timeout_seconds,
        )

    def _post(self, url: str, payload: dict) -> dict:
        """POST to the identity service and return the JSON body."""
        try:
            response = self._send(url, payload)
        except requests.RequestException as e:
            logger.error("identity_service_unreachable", url=url, error=str(e))
            raise AuthServiceUnavailableError(
                "Could not reach the sign-in service. Please try again."
            ) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code != 200:
            error = map_identity_error(body)
            logger.warning(
                "identity_request_rejected",
                status=response.status_code,
                error_type=type(error).__name__,
            )
            raise error
        return body

    def _identity_url(self, action: str) -> str:
        return f"{self._settings.identity_base_url}/accounts:{action}"

    @staticmethod
    def _session_from(body: dict, display_name: Optional[str] = None) -> UserSession:
        expires_in = int(body.get("expiresIn") or body.get("expires_in") or 3600)
        return UserSession(
            uid=body.get("localId") or body["user_id"],
            email=body.get("email", ""),
            display_name=body.get("displayName") or display_name,
            id_token=body.get("idToken") or body["id_token"],
            refresh_token=body.get("refreshToken") or body["refresh_token"],
            expires_at=utc_now() + timedelta(seconds=expires_in),
        )

    async def sign_up(
        self,
        email: str,
        password: str,
        display_name: Optional[str] = None,
    ) -> UserSession:
        """
        Create an account and sign in.

        Raises:
            EmailAlreadyExistsError, WeakPasswordError, AuthError
        """
        validate_credentials(email, password)
        body = self._post(
            self._identity_url("signUp"),
            {"email": email.strip(), "password": password, "returnSecureToken": True},
        )
        session = self._session_from(body)

        if display_name:
            self._post(
                self._identity_url("update"),
                {
                    "idToken": session.id_token,
                    "displayName": display_name,
                    "returnSecureToken": False,
                },
            )
            session.display_name = display_name

        logger.info("user_signed_up", uid=session.uid)
        return session

    async def sign_in(self, email: str, password: str) -> UserSession:
        """
        Sign in with email and password.

        Raises:
            InvalidCredentialsError, TooManyAttemptsError, AuthError
        """
        if not email or not password:
            raise InvalidCredentialsError("Please enter your email and password")
        body = self._post(
            self._identity_url("signInWithPassword"),
            {"email": email.strip(), "password": password, "returnSecureToken": True},
        )
        session = self._session_from(body)
        logger.info("user_signed_in", uid=session.uid)
        return session

    async def send_password_reset(self, email: str) -> None:
        """Ask the identity service to email a password reset link."""
        if not email or not EMAIL_PATTERN.match(email.strip()):
            raise InvalidCredentialsError("Please enter a valid email address")
        self._post(
            self._identity_url("sendOobCode"),
            {"requestType": "PASSWORD_RESET", "email": email.strip()},
        )
        logger.info("password_reset_requested")

    async def refresh(self, session: UserSession) -> UserSession:
        """Exchange the refresh token for a fresh id token."""
        body = self._post(
            f"{self._settings.token_base_url}/token",
            {"grant_type": "refresh_token", "refresh_token": session.refresh_token},
        )
        refreshed = self._session_from(body, display_name=session.display_name)
        return refreshed.model_copy(update={"email": session.email})
