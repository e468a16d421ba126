# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.session import UserSession
from .auth.otp import OTPCode

__all__ = [
    "User",
    "UserSession",
    "OTPCode",
]
