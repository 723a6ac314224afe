"""
OAuth 2.0 authorization-code flow shared by cloud providers.

The interactive part of the grant is delegated to an AuthFlowLauncher: it
receives the authorization URL, lets the user approve access, and returns
the URL the provider redirected to.
"""

import asyncio
import logging
import webbrowser
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict
from urllib.parse import parse_qs, urlencode, urlparse

from pydantic import BaseModel

from ..exceptions import AuthorizationError, create_error_context
from ..models import AccessTokenGrant, RefreshedToken
from .base import CloudStorage
from .http import CloudHTTPClient, validate

logger = logging.getLogger(__name__)

AuthFlowLauncher = Callable[[str, str], Awaitable[str]]


class TokenResponse(BaseModel):
    access_token: str
    expires_in: int
    refresh_token: str


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int


class ConsoleAuthFlow:
    """
    Launches the grant in a browser and reads the redirect URL from stdin.

    Suitable for running the service from a terminal.
    """

    def __init__(self, open_browser: bool = True):
        self.open_browser = open_browser

    async def __call__(self, auth_url: str, redirect_uri: str) -> str:
        print(f"Open this URL to authorize access:\n{auth_url}\n")
        if self.open_browser:
            webbrowser.open(auth_url)
        prompt = f"Paste the URL you were redirected to ({redirect_uri}...): "
        return (await asyncio.to_thread(input, prompt)).strip()


@dataclass
class OAuthEndpoints:
    """Provider endpoints and app identity."""
    auth_url: str
    token_url: str
    client_id: str
    client_secret: str
    redirect_uri: str
    auth_params: Dict[str, str] = field(default_factory=dict)


class OAuthClient:
    """Runs the authorization-code grant against one provider."""

    def __init__(self, endpoints: OAuthEndpoints, http: CloudHTTPClient, launcher: AuthFlowLauncher):
        self.endpoints = endpoints
        self.http = http
        self.launcher = launcher

    def build_auth_url(self) -> str:
        params = {
            "client_id": self.endpoints.client_id,
            "redirect_uri": self.endpoints.redirect_uri,
            "response_type": "code",
            **self.endpoints.auth_params,
        }
        return f"{self.endpoints.auth_url}?{urlencode(params)}"

    async def authorize(self) -> str:
        """
        Run the interactive grant.

        Returns:
            Authorization code

        Raises:
            AuthorizationError: The redirect carried an error or no code
        """
        redirect_url = await self.launcher(self.build_auth_url(), self.endpoints.redirect_uri)
        query = parse_qs(urlparse(redirect_url or "").query)

        context = create_error_context(operation="authorize")
        if "error" in query:
            raise AuthorizationError(query["error"][0], context=context)
        codes = query.get("code")
        if not codes or not codes[0]:
            raise AuthorizationError("no authorization code returned", context=context)
        return codes[0]

    async def exchange_code(self, code: str) -> AccessTokenGrant:
        data = await self.http.request_json(
            "POST",
            self.endpoints.token_url,
            data={
                "code": code,
                "client_id": self.endpoints.client_id,
                "client_secret": self.endpoints.client_secret,
                "redirect_uri": self.endpoints.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        response = validate(TokenResponse, data)
        return AccessTokenGrant(
            access_token=response.access_token,
            expires_in=response.expires_in,
            refresh_token=response.refresh_token,
        )

    async def refresh(self, refresh_token: str) -> RefreshedToken:
        data = await self.http.request_json(
            "POST",
            self.endpoints.token_url,
            data={
                "client_id": self.endpoints.client_id,
                "client_secret": self.endpoints.client_secret,
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
        )
        response = validate(RefreshResponse, data)
        return RefreshedToken(access_token=response.access_token, expires_in=response.expires_in)


class OAuthCloudStorage(CloudStorage):
    """Cloud storage whose OAuth operations go through an OAuthClient."""

    def __init__(self, oauth: OAuthClient, http: CloudHTTPClient):
        self.oauth = oauth
        self.http = http

    async def authorize(self) -> str:
        return await self.oauth.authorize()

    async def get_access_token(self, authorization_code: str) -> AccessTokenGrant:
        return await self.oauth.exchange_code(authorization_code)

    async def refresh_access_token(self, refresh_token: str) -> RefreshedToken:
        return await self.oauth.refresh(refresh_token)

    @staticmethod
    def bearer(access_token: str) -> Dict[str, Any]:
        return {"Authorization": f"Bearer {access_token}"}
