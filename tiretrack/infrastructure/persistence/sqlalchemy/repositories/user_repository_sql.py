from datetime import datetime
from typing import Optional
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User
from .....application.ports.user_repo import UserRepository, UserRecord
from .....application.validators import mask_phone

class SqlUserRepository(UserRepository):
    def __init__(self, engine: Engine):
        self.engine = engine

    def _to_record(self, user: User) -> UserRecord:
        return UserRecord(
            id=user.id,
            phone=user.phone,
            phone_masked=user.phone_masked,
            display_name=user.display_name,
            created_at=user.created_at,
            last_login=user.last_login,
        )

    def get_by_phone(self, phone: str) -> Optional[UserRecord]:
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.phone == phone)).first()
            return self._to_record(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            return self._to_record(user) if user else None

    def get_or_create_by_phone(self, phone: str) -> UserRecord:
        with Session(self.engine) as session:
            user = session.exec(select(User).where(User.phone == phone)).first()
            if user:
                return self._to_record(user)
            user = User(phone=phone, phone_masked=mask_phone(phone))
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # concurrent first login from the same number; use the winner's row
                session.rollback()
                user = session.exec(select(User).where(User.phone == phone)).one()
                return self._to_record(user)
            session.refresh(user)
            return self._to_record(user)

    def touch_last_login(self, user_id: str, when: datetime) -> None:
        with Session(self.engine) as session:
            user = session.get(User, user_id)
            if not user:
                return
            user.last_login = when
            session.add(user)
            session.commit()
