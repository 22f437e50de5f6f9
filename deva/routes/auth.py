import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse

from deva.dependencies import LinearFactory, get_linear_factory, get_linear_oauth
from deva.errors import DevaError
from deva.oauth import LinearOAuth, OAuthError
from deva.session import Session, get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _home_redirect(**params: str) -> RedirectResponse:
    query = f"?{urlencode(params)}" if params else ""
    return RedirectResponse(url=f"/{query}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/linear")
async def start_linear_oauth(
    session: Session = Depends(get_session),
    oauth: LinearOAuth = Depends(get_linear_oauth),
):
    """Redirect the browser to Linear's consent screen."""
    if session.is_authenticated:
        return _home_redirect()

    if not oauth.is_configured:
        logger.warning("Linear OAuth not configured properly")
        return _home_redirect(error="oauth_not_configured")

    return RedirectResponse(url=oauth.authorization_url(), status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@router.get("/linear/callback")
async def linear_oauth_callback(
    code: Optional[str] = None,
    error: Optional[str] = None,
    session: Session = Depends(get_session),
    oauth: LinearOAuth = Depends(get_linear_oauth),
    linear_factory: LinearFactory = Depends(get_linear_factory),
):
    """Exchange the authorization code and store the token in the session."""
    if error:
        return _home_redirect(error=error)
    if not code:
        return _home_redirect(error="no_code")
    if not oauth.is_configured:
        return _home_redirect(error="oauth_not_configured")

    try:
        access_token = await oauth.exchange_code(code)
        async with linear_factory(access_token) as linear:
            viewer = await linear.get_my_user()
    except (OAuthError, DevaError) as e:
        logger.error(f"Linear OAuth error: {str(e)}")
        return _home_redirect(error="auth_failed")

    session.login(access_token, user_id=viewer.id, user_email=viewer.email)
    response = _home_redirect(auth="success")
    session.save(response)
    logger.info("Linear account connected", extra={"user_id": viewer.id})
    return response


@router.get("/session")
async def get_session_status(session: Session = Depends(get_session)):
    """Report whether the caller has a valid session, without exposing the token."""
    if not session.is_authenticated:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"authenticated": False, "message": "No valid session found"},
        )

    return {
        "authenticated": True,
        "user": {"id": session.data.user_id, "email": session.data.user_email},
    }


@router.delete("/session")
async def logout(session: Session = Depends(get_session)):
    """Destroy the session. Safe to call repeatedly."""
    session.destroy()
    response = JSONResponse(content={"success": True, "message": "Logged out successfully"})
    session.save(response)
    return response
