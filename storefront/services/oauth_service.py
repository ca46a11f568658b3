"""Google OAuth: consent URL, signed state, code exchange and profile fetch."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urlencode

import httpx
from jose import JWTError, jwt

from storefront.config import Settings
from storefront.schemas.auth import ExternalProfile, ProfileValue

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

STATE_TTL_SECONDS = 600  # 10 minutes
STATE_TYPE = "oauth_state"


class OAuthError(Exception):
    pass


def create_state(settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {
            "type": STATE_TYPE,
            "nonce": secrets.token_urlsafe(16),
            "exp": now + timedelta(seconds=STATE_TTL_SECONDS),
        },
        settings.secret_key,
        algorithm=settings.algorithm,
    )


def verify_state(settings: Settings, state: str) -> bool:
    try:
        payload = jwt.decode(state, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return False
    return payload.get("type") == STATE_TYPE


def google_authorization_url(settings: Settings) -> str:
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_redirect_uri,
        "response_type": "code",
        "scope": "openid email profile",
        "state": create_state(settings),
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def google_profile(userinfo: dict[str, Any]) -> ExternalProfile:
    """Map an OpenID Connect userinfo document to an ExternalProfile."""
    sub = userinfo.get("sub")
    if not sub:
        raise OAuthError("Google userinfo has no subject")
    email = userinfo.get("email")
    picture = userinfo.get("picture")
    return ExternalProfile(
        id=str(sub),
        provider="google",
        displayName=userinfo.get("name") or (email.split("@")[0] if email else "google-user"),
        emails=[ProfileValue(value=email)] if email else None,
        photos=[ProfileValue(value=picture)] if picture else None,
    )


async def fetch_google_profile(settings: Settings, code: str) -> ExternalProfile:
    """Exchange an authorization code and fetch the signed-in user's profile."""
    try:
        async with httpx.AsyncClient(timeout=15.0) as client:
            resp = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.google_client_id,
                    "client_secret": settings.google_client_secret,
                    "redirect_uri": settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            resp.raise_for_status()
            access_token = resp.json().get("access_token")
            if not access_token:
                raise OAuthError("Google token response has no access_token")
            info = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            info.raise_for_status()
            return google_profile(info.json())
    except httpx.HTTPError as e:
        raise OAuthError(f"Google OAuth exchange failed: {e}") from e
