"""
Auth API Endpoints.

Admin login/logout (cookie based) and courtesy password verification.
"""

from fastapi import APIRouter, Depends, Response

from api.auth import AUTH_COOKIE, AUTH_COOKIE_MAX_AGE, session_token
from api.models import MessageResponse, PasswordRequest
from config import Settings, get_settings
from domain.errors import UnauthorizedError, ValidationError
from services.sale_service import verify_admin_password

router = APIRouter()


@router.post(
    "/login",
    response_model=MessageResponse,
    summary="Admin Login",
    description="Exchange the admin password for an httponly session cookie (valid for one hour)."
)
def login(request: PasswordRequest, response: Response, settings: Settings = Depends(get_settings)):
    if not verify_admin_password(request.password, settings):
        raise UnauthorizedError("Wrong password")

    response.set_cookie(
        AUTH_COOKIE,
        session_token(settings),
        httponly=True,
        samesite="lax",
        secure=False,
        max_age=AUTH_COOKIE_MAX_AGE,
    )
    return MessageResponse(message="Login successful")


@router.post("/logout", response_model=MessageResponse, summary="Admin Logout")
def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE)
    return MessageResponse(message="Logout successful")


@router.post(
    "/verify-courtesy",
    response_model=MessageResponse,
    summary="Verify Courtesy Password",
    description="Check the password the cashier typed before zeroing a line's price."
)
def verify_courtesy(request: PasswordRequest, settings: Settings = Depends(get_settings)):
    """
    The sale endpoint re-checks the same password when the sale is submitted;
    this endpoint only lets the UI give immediate feedback.
    """
    if not request.password or not request.password.strip():
        raise ValidationError("Password is required")
    if not verify_admin_password(request.password, settings):
        raise UnauthorizedError("Wrong password")
    return MessageResponse(message="Password accepted")
