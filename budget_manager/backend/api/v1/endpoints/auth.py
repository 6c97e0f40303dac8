"""
Auth API Endpoints.

Google sign-in, session refresh, profile and database checks.
"""

from fastapi import APIRouter, Query
from fastapi.responses import RedirectResponse

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.schemas.auth import (
    AuthUrlResponse,
    DatabaseStatusResponse,
    ProfileResponse,
    ProfileUpdate,
    RefreshRequest,
    SessionTokenResponse,
)
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.services.auth import AuthService, sign_in_redirect
from budget_manager.backend.services.user import UserService

router = APIRouter()


@router.get(
    "/google",
    response_model=ApiResponse[AuthUrlResponse],
    summary="Start Google sign-in",
)
async def google_auth_url() -> ApiResponse[AuthUrlResponse]:
    """Consent URL for spreadsheets, drive.file and the user's profile."""
    return ApiResponse(data=AuthUrlResponse(auth_url=AuthService().authorization_url()))


@router.get(
    "/google/callback",
    status_code=302,
    summary="Google OAuth callback",
    description="Signs the user in and redirects to the frontend with ?token= or ?error=.",
)
async def google_callback(code: str | None = Query(default=None)) -> RedirectResponse:
    url = await sign_in_redirect(AuthService(), code)
    return RedirectResponse(url=url, status_code=302)


@router.post(
    "/refresh",
    response_model=ApiResponse[SessionTokenResponse],
    summary="Refresh the Google access token",
)
async def refresh_token(user: CurrentUser, data: RefreshRequest | None = None) -> ApiResponse[SessionTokenResponse]:
    token = await AuthService().refresh(user, data.refresh_token if data else None)
    return ApiResponse(data=token, message="Token refreshed successfully")


@router.get(
    "/profile",
    response_model=ApiResponse[ProfileResponse],
    summary="Get the signed-in user's profile",
)
async def get_profile(user: CurrentUser, store: Store) -> ApiResponse[ProfileResponse]:
    return ApiResponse(data=await UserService(store).get_profile(user))


@router.put(
    "/profile",
    response_model=ApiResponse[ProfileResponse],
    summary="Update Telegram username and chat id",
)
async def update_profile(data: ProfileUpdate, user: CurrentUser, store: Store) -> ApiResponse[ProfileResponse]:
    profile = await UserService(store).update_profile(user, data)
    return ApiResponse(data=profile, message="Profile updated successfully")


@router.get(
    "/validate-database",
    response_model=ApiResponse[DatabaseStatusResponse],
    summary="Check that the user's spreadsheet is accessible",
)
async def validate_database(user: CurrentUser) -> ApiResponse[DatabaseStatusResponse]:
    is_valid = await AuthService().validate_database(user)
    return ApiResponse(data=DatabaseStatusResponse(spreadsheet_id=user.spreadsheet_id, is_valid=is_valid))


@router.post(
    "/recreate-database",
    response_model=ApiResponse[list[str]],
    summary="Repair the spreadsheet schema and restore the user's rows",
)
async def recreate_database(user: CurrentUser, store: Store) -> ApiResponse[list[str]]:
    created = await UserService(store).recreate_database(user)
    return ApiResponse(data=created, message="Database recreated successfully")


@router.post("/logout", response_model=ApiResponse[None], summary="Sign out")
async def logout() -> ApiResponse[None]:
    """Sessions are stateless JWTs; the client discards its token."""
    return ApiResponse(message="Logged out successfully")
