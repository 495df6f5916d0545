"""
Email/password authentication for the admin surface.

Sign-in goes through the identity service's REST endpoint; the signed-in
user is held in memory and announced to auth-state listeners.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from .store.base import Subscription
from .utils.errors import AuthError, Result

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# Provider error codes to user-facing messages
ERROR_MESSAGES = {
    "auth/invalid-email": "Geçersiz email adresi",
    "auth/user-disabled": "Bu hesap devre dışı bırakılmış",
    "auth/user-not-found": "Kullanıcı bulunamadı",
    "auth/wrong-password": "Hatalı şifre",
    "auth/too-many-requests": "Çok fazla deneme. Lütfen bekleyin.",
    "auth/invalid-credential": "Email veya şifre hatalı",
}
DEFAULT_ERROR_MESSAGE = "Giriş yapılamadı. Lütfen tekrar deneyin."

# REST error messages to provider error codes
REST_ERROR_CODES = {
    "INVALID_EMAIL": "auth/invalid-email",
    "USER_DISABLED": "auth/user-disabled",
    "EMAIL_NOT_FOUND": "auth/user-not-found",
    "INVALID_PASSWORD": "auth/wrong-password",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "auth/too-many-requests",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
}


def get_error_message(code: Optional[str]) -> str:
    """User-facing message for a provider error code, generic for unknown codes."""
    return ERROR_MESSAGES.get(code, DEFAULT_ERROR_MESSAGE)


def error_code_from_response(message: str) -> str:
    """Provider error code for a REST error message such as 'TOO_MANY_ATTEMPTS_TRY_LATER : ...'."""
    key = message.split(":")[0].strip()
    return REST_ERROR_CODES.get(key, "auth/" + key.lower().replace("_", "-"))


@dataclass
class User:
    uid: str
    email: str
    id_token: str = ""
    refresh_token: str = ""


class AuthService:
    """
    Identity service client holding the session of one admin surface.

    Example:
        >>> auth = AuthService(api_key)
        >>> result = auth.sign_in("staff@cafe.com", "secret")
        >>> if not result:
        ...     print(result.error)
    """

    def __init__(self, api_key: Optional[str], timeout: float = 10):
        self.api_key = api_key
        self.timeout = timeout
        self.current_user: Optional[User] = None
        self._listeners: List[Callable[[Optional[User]], None]] = []

    def sign_in(self, email: str, password: str) -> Result:
        """
        Sign in with email and password.

        Returns:
            Result with the User as value, or the localized error message
        """
        try:
            user = self._request_sign_in(email, password)
        except AuthError as e:
            logger.error(f"Login error: {e.code} ({e})")
            return Result.fail(get_error_message(e.code))

        self.current_user = user
        logger.info(f"Signed in as {user.email}")
        self._notify()
        return Result.ok(value=user, id=user.uid)

    def _request_sign_in(self, email: str, password: str) -> User:
        if not self.api_key:
            raise AuthError("auth/invalid-api-key", "auth.api_key is not configured")

        try:
            response = requests.post(
                SIGN_IN_URL,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self.timeout,
            )
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise AuthError("auth/network-request-failed", str(e)) from e
        except ValueError as e:
            raise AuthError("auth/internal-error", f"Invalid response: {e}") from e

        if not isinstance(payload, dict):
            raise AuthError("auth/internal-error", "Invalid response")
        if response.status_code != 200 or "error" in payload:
            error = payload.get("error")
            message = str(error.get("message", "UNKNOWN")) if isinstance(error, dict) else "UNKNOWN"
            raise AuthError(error_code_from_response(message), message)

        return User(
            uid=payload.get("localId", ""),
            email=payload.get("email", email),
            id_token=payload.get("idToken", ""),
            refresh_token=payload.get("refreshToken", ""),
        )

    def sign_out(self) -> None:
        if self.current_user is None:
            return
        logger.info(f"Signed out {self.current_user.email}")
        self.current_user = None
        self._notify()

    def on_auth_state_changed(self, callback: Callable[[Optional[User]], None]) -> Subscription:
        """Call back now with the current user and after every sign-in or sign-out."""
        self._listeners.append(callback)
        callback(self.current_user)
        return Subscription("auth", on_cancel=lambda: self._listeners.remove(callback))

    def require_auth(self, on_login_required: Callable[[], None]) -> Optional[User]:
        """
        Gate for the admin surface.

        Returns the signed-in user, or calls on_login_required and returns
        None when nobody is signed in.
        """
        if self.current_user is None:
            logger.info("Not signed in, redirecting to login")
            on_login_required()
            return None
        return self.current_user

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.current_user)
            except Exception as e:
                logger.error(f"Auth state listener failed: {e}", exc_info=True)
