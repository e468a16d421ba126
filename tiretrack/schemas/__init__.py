from .auth.auth import (
    RequestOtpRequest, RequestOtpResponse,
    VerifyOtpRequest, VerifyOtpResponse,
    LogoutResponse, MeResponse,
)

__all__ = [
    "RequestOtpRequest",
    "RequestOtpResponse",
    "VerifyOtpRequest",
    "VerifyOtpResponse",
    "LogoutResponse",
    "MeResponse",
]
