"""Auth0 authorization-code flow client."""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from src.auth.domains import is_email_domain_allowed
from src.errors import AuthenticationError, DomainNotAllowedError, UpstreamServiceError
from src.utils.config import Settings, settings
from src.utils.logger import get_logger

log = get_logger(__name__)


class IdentityProvider:
    """Builds login/logout URLs and completes the code exchange against Auth0."""

    def __init__(
        self,
        cfg: Settings = settings,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.cfg = cfg
        self.base_url = f"https://{cfg.auth0_domain}"
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def login_url(self, state: str, redirect_uri: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.cfg.auth0_client_id,
            "redirect_uri": redirect_uri,
            "scope": self.cfg.auth0_scope,
            "state": state,
        }
        if self.cfg.auth0_connection:
            params["connection"] = self.cfg.auth0_connection
        return f"{self.base_url}/authorize?{urlencode(params)}"

    def logout_url(self, return_to: Optional[str] = None) -> str:
        params = {
            "client_id": self.cfg.auth0_client_id,
            "returnTo": return_to or self.cfg.frontend_url,
        }
        return f"{self.base_url}/v2/logout?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        try:
            resp = await self._client.post(
                f"{self.base_url}/oauth/token",
                json={
                    "grant_type": "authorization_code",
                    "client_id": self.cfg.auth0_client_id,
                    "client_secret": self.cfg.auth0_client_secret,
                    "code": code,
                    "redirect_uri": redirect_uri,
                },
            )
        except httpx.HTTPError as exc:
            raise UpstreamServiceError(f"Token exchange failed: {exc}") from exc
        if resp.status_code in (400, 401, 403):
            raise AuthenticationError("Failed to exchange authorization code for tokens")
        if resp.is_error:
            raise UpstreamServiceError(f"Token exchange failed with status {resp.status_code}")
        return resp.json()

    async def get_user_info(self, access_token: str) -> Dict[str, Any]:
        try:
            resp = await self._client.get(
                f"{self.base_url}/userinfo",
                headers={"Authorization": f"Bearer {access_token}"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise UpstreamServiceError("Failed to get user information") from exc
        return resp.json()

    def validate_user_domain(self, email: Optional[str]) -> None:
        if not email:
            raise AuthenticationError("User email is required")
        if not is_email_domain_allowed(email, self.cfg):
            domain = email.rsplit("@", 1)[-1]
            raise DomainNotAllowedError(
                f"Access denied for domain: {domain}. {self.cfg.domain_block_message}"
            )

    async def complete_authentication(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        """Exchange *code*, fetch the profile and enforce the domain policy."""
        tokens = await self.exchange_code(code, redirect_uri)
        info = await self.get_user_info(tokens["access_token"])
        self.validate_user_domain(info.get("email"))
        log.info("Authenticated user %s", info.get("email"))
        return {
            "id": info["sub"],
            "email": info.get("email", ""),
            "name": info.get("name", ""),
            "picture": info.get("picture"),
            "emailVerified": bool(info.get("email_verified", False)),
        }

    async def close(self) -> None:
        await self._client.aclose()
