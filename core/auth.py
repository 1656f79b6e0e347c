"""Email/password sign-in against the Firebase Identity Toolkit REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# Identity Toolkit error codes -> user-facing text
_MESSAGES = {
    "EMAIL_NOT_FOUND": "No account found for this email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
}


class AuthError(RuntimeError):
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class AuthUser:
    uid: str
    email: str
    id_token: str = ""
    refresh_token: str = ""


class FirebaseAuthClient:
    def __init__(self, api_key: Optional[str], session: Optional[requests.Session] = None, timeout: float = 15.0):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def sign_in(self, email: str, password: str) -> AuthUser:
        if not self.api_key:
            raise AuthError("Sign-in is not configured (FIREBASE_API_KEY missing).", "NOT_CONFIGURED")
        if not email or not password:
            raise AuthError("Email and password are required.", "MISSING_CREDENTIALS")

        try:
            resp = self.session.post(
                SIGN_IN_URL,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("sign-in request failed: %s", exc)
            raise AuthError("Could not reach the sign-in service.", "NETWORK") from exc

        try:
            body: Dict[str, Any] = resp.json()
        except ValueError:
            body = {}
        if resp.status_code != 200:
            code = str(((body.get("error") or {}).get("message") or "UNKNOWN")).split(" ")[0]
            raise AuthError(_MESSAGES.get(code, "Sign-in failed."), code)

        return AuthUser(
            uid=body.get("localId", ""),
            email=body.get("email", email),
            id_token=body.get("idToken", ""),
            refresh_token=body.get("refreshToken", ""),
        )
