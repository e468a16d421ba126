# tiretrack/db/models/users/user.py
from typing import Optional, List
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime
import uuid

from ....utils import utcnow

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    phone: str = Field(max_length=20, unique=True, index=True)
    phone_masked: str = Field(max_length=20)
    display_name: Optional[str] = Field(max_length=100, default=None)
    last_login: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)

    # Relationships
    sessions: List["UserSession"] = Relationship(back_populates="user")
