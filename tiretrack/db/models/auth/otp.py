# tiretrack/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from datetime import datetime

class OTPCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    # one live code per phone
    phone: str = Field(max_length=20, primary_key=True)
    code: str = Field(max_length=10)
    attempts_used: int = Field(default=0)
    created_at: datetime
    expires_at: datetime
    last_sent_at: datetime
