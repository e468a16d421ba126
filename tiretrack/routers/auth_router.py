from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from ..core.config import Settings
from ..application.ports.user_repo import UserRecord
from ..application.services.auth_gateway import AuthGateway
from ..dependencies import (
    get_app_settings,
    get_auth_gateway,
    get_client_ip,
    get_current_user,
    get_session_token,
)
from ..schemas import (
    RequestOtpRequest, RequestOtpResponse,
    VerifyOtpRequest, VerifyOtpResponse,
    LogoutResponse, MeResponse,
)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


@router.post("/request-otp", response_model=RequestOtpResponse, response_model_exclude_none=True)
def request_otp(
    payload: RequestOtpRequest,
    request: Request,
    gateway: AuthGateway = Depends(get_auth_gateway),
):
    return gateway.request_otp(payload.phone, ip_address=get_client_ip(request))


@router.post("/verify-otp", response_model=VerifyOtpResponse, response_model_exclude_none=True)
def verify_otp(
    payload: VerifyOtpRequest,
    request: Request,
    response: Response,
    gateway: AuthGateway = Depends(get_auth_gateway),
    settings: Settings = Depends(get_app_settings),
):
    result = gateway.verify_otp(payload.phone, payload.code, ip_address=get_client_ip(request))
    if result["success"]:
        set_session_cookie(response, result["session_token"], settings)
    return result


@router.post("/logout", response_model=LogoutResponse)
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    gateway: AuthGateway = Depends(get_auth_gateway),
    settings: Settings = Depends(get_app_settings),
):
    result = gateway.logout(token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return result


@router.get("/me", response_model=MeResponse)
def me(user: UserRecord = Depends(get_current_user)):
    return MeResponse(
        id=user.id,
        phone=user.phone,
        phone_masked=user.phone_masked,
        display_name=user.display_name,
        last_login=user.last_login,
    )
