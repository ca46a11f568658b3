"""Google sign-in: redirect to consent, then log in from the callback."""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse

from storefront.dependencies import Auth, SettingsDep
from storefront.services import oauth_service
from storefront.services.oauth_service import OAuthError
from storefront.services.session import is_secure_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth", tags=["oauth"])


@router.get("/google")
def google_login(settings: SettingsDep):
    return RedirectResponse(oauth_service.google_authorization_url(settings))


@router.get("/google/callback")
async def google_callback(
    request: Request,
    settings: SettingsDep,
    auth: Auth,
    code: Optional[str] = None,
    state: Optional[str] = None,
):
    """Log in (creating the account on first visit), then send the client back to the storefront."""
    redirect = RedirectResponse(settings.client_url)
    if not code or not state or not oauth_service.verify_state(settings, state):
        logger.warning("Google callback without a valid code/state")
        return redirect
    try:
        profile = await oauth_service.fetch_google_profile(settings, code)
    except OAuthError as e:
        logger.warning("Google login failed: %s", e)
        return redirect
    session = await auth.external_login(profile, secure=is_secure_request(request))
    session.cookie.apply(redirect)
    return redirect
