"""Identity service package."""

from finance_tracker.services.auth.identity_service import (
    AuthError,
    AuthServiceUnavailableError,
    EmailAlreadyExistsError,
    IdentityToolkitAuthService,
    InvalidCredentialsError,
    TooManyAttemptsError,
    UserSession,
    WeakPasswordError,
    clear_user_state,
    map_identity_error,
    validate_credentials,
)

__all__ = [
    "AuthError",
    "AuthServiceUnavailableError",
    "EmailAlreadyExistsError",
    "IdentityToolkitAuthService",
    "InvalidCredentialsError",
    "TooManyAttemptsError",
    "UserSession",
    "WeakPasswordError",
    "clear_user_state",
    "map_identity_error",
    "validate_credentials",
]
