from __future__ import annotations

import logging
from typing import Optional

import requests
from jose import JWTError, jwt

from ..core.config import (
    AUTH_API_KEY,
    AUTH_JWT_ALGORITHM,
    AUTH_JWT_AUDIENCE,
    AUTH_JWT_SECRET,
    AUTH_REQUEST_TIMEOUT_SECONDS,
    AUTH_URL,
)
from ..errors import Unauthorized

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "Bearer "


def parse_bearer(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith(_BEARER_PREFIX):
        raise Unauthorized("Missing or invalid authorization header")
    token = authorization[len(_BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Missing or invalid authorization header")
    return token


class IdentityVerifier:
    """Resolves a bearer token to the provider's user id.

    With a JWT secret configured the token is checked locally; otherwise the
    provider's user endpoint is asked on every call.
    """

    def __init__(
        self,
        auth_url: str = AUTH_URL,
        api_key: str = AUTH_API_KEY,
        jwt_secret: str = AUTH_JWT_SECRET,
        jwt_algorithm: str = AUTH_JWT_ALGORITHM,
        jwt_audience: Optional[str] = AUTH_JWT_AUDIENCE,
        timeout: float = AUTH_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.auth_url = (auth_url or "").rstrip("/")
        self.api_key = api_key
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.jwt_audience = jwt_audience or None
        self.timeout = timeout

    def verify(self, token: str) -> str:
        if not token:
            raise Unauthorized("Missing or invalid authorization header")
        if self.jwt_secret:
            return self._verify_local(token)
        return self._verify_remote(token)

    def _verify_local(self, token: str) -> str:
        options = {"verify_aud": self.jwt_audience is not None}
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                audience=self.jwt_audience,
                options=options,
            )
        except JWTError as exc:
            logger.warning("Rejected bearer token: %s", exc)
            raise Unauthorized("Invalid token") from exc
        user_id = payload.get("sub")
        if not user_id:
            raise Unauthorized("Invalid token")
        return str(user_id)

    def _verify_remote(self, token: str) -> str:
        if not self.auth_url:
            logger.error("AUTH_URL is not configured; cannot verify tokens")
            raise Unauthorized()
        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key
        try:
            response = requests.get(
                f"{self.auth_url}/auth/v1/user",
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Identity provider request failed: %s", exc)
            raise Unauthorized() from exc

        if response.status_code != 200:
            logger.warning("Identity provider rejected token (status=%s)", response.status_code)
            raise Unauthorized("Invalid token")
        try:
            payload = response.json()
        except ValueError as exc:
            raise Unauthorized("Invalid token") from exc
        user_id = payload.get("id") if isinstance(payload, dict) else None
        if not user_id:
            raise Unauthorized("Invalid token")
        return str(user_id)
