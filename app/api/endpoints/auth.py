from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from fastapi_sso.sso.google import GoogleSSO
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.async_session import get_async_db
from app.schemas.auth import AuthResponse, OAuthProfile, UserLogin, UserRegister
from app.services.async_auth import AsyncAuthService
from app.utils.logger import auth_logger

router = APIRouter()


def get_google_sso() -> Optional[GoogleSSO]:
    """Google SSO client, or None when Google credentials are not configured."""
    if not settings.GOOGLE_CLIENT_ID or not settings.GOOGLE_CLIENT_SECRET:
        return None
    return GoogleSSO(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        redirect_uri=settings.GOOGLE_CALLBACK_URL,
        allow_insecure_http=settings.ENVIRONMENT == "development",  # Only for development
    )


def _require_google_sso(google_sso: Optional[GoogleSSO] = Depends(get_google_sso)) -> GoogleSSO:
    if google_sso is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google login is not configured",
        )
    return google_sso


def _frontend_callback(**params: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL}/auth/callback?{urlencode(params)}",
        status_code=status.HTTP_302_FOUND,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def register(user_data: UserRegister, db: AsyncSession = Depends(get_async_db)) -> Any:
    """
    Register a new user with email and password.
    Returns an access token for the new account.
    """
    return await AsyncAuthService.register(db, user_data.email, user_data.password)


@router.post("/login", response_model=AuthResponse)
async def login(user_data: UserLogin, db: AsyncSession = Depends(get_async_db)) -> Any:
    """Log in with email and password."""
    return await AsyncAuthService.login(db, user_data.email, user_data.password)


@router.get("/google")
async def google_login(google_sso: GoogleSSO = Depends(_require_google_sso)) -> Any:
    """Redirect the browser to Google's consent screen."""
    async with google_sso:
        return await google_sso.get_login_redirect(
            redirect_uri=settings.GOOGLE_CALLBACK_URL,
            params={"prompt": "select_account"},
        )


@router.get("/google/callback")
async def google_callback(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
    google_sso: GoogleSSO = Depends(_require_google_sso),
) -> Any:
    """
    Handles the Google OAuth callback via GET redirect from Google.
    Redirects the user back to the frontend with either `token` or `error`.
    """
    try:
        async with google_sso:
            google_user = await google_sso.verify_and_process(request)

        if not google_user or not google_user.id:
            return _frontend_callback(error="authentication_failed")

        profile = OAuthProfile(
            provider_id=str(google_user.id),
            email=google_user.email,
            name=google_user.display_name or google_user.email,
            picture=google_user.picture,
        )
        user = await AsyncAuthService.validate_oauth_user(db, profile)
        token = AsyncAuthService.create_access_token(user.id)

        return _frontend_callback(token=token)

    except HTTPException as e:
        auth_logger.warning(f"Google login rejected: {e.detail}", "OAUTH")
        return _frontend_callback(error=str(e.detail))
    except Exception as e:
        auth_logger.error(f"Google login failed: {e}", "OAUTH", exc_info=True)
        await db.rollback()
        return _frontend_callback(error="authentication_failed")
