# tiretrack/schemas/auth/auth.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from ...application.validators import normalize_phone

class RequestOtpRequest(BaseModel):
    phone: str = Field(..., description="Thai mobile number, e.g. 0812345678 or 081-234-5678")

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

class RequestOtpResponse(BaseModel):
    success: bool
    cooldown_seconds: Optional[int] = None
    phone_masked: Optional[str] = None
    error: Optional[str] = None

class VerifyOtpRequest(BaseModel):
    phone: str = Field(..., description="Thai mobile number the code was sent to")
    code: str = Field(..., description="One-time code from the SMS")

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    @field_validator('code')
    @classmethod
    def validate_code_digits(cls, v):
        # length is checked against OTP_CODE_LENGTH by the verifier
        if not (v.isascii() and v.isdigit()):
            raise ValueError('OTP must contain only digits')
        return v

class VerifyOtpResponse(BaseModel):
    success: bool
    session_token: Optional[str] = None
    attempts_remaining: Optional[int] = None
    error: Optional[str] = None

class LogoutResponse(BaseModel):
    success: bool

class MeResponse(BaseModel):
    id: str
    phone: str
    phone_masked: str
    display_name: Optional[str] = None
    last_login: Optional[datetime] = None
