from typing import Optional
from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import UserSession
from .....application.ports.session_repo import SessionRepository, SessionRecord, DuplicateToken


class SqlSessionRepository(SessionRepository):
    def __init__(self, engine: Engine):
        self.engine = engine

    def _to_record(self, rec: UserSession) -> SessionRecord:
        return SessionRecord(
            token=rec.token,
            user_id=rec.user_id,
            created_at=rec.created_at,
            expires_at=rec.expires_at,
            ip_address=rec.ip_address,
        )

    def create(self, record: SessionRecord) -> SessionRecord:
        rec = UserSession(
            user_id=record.user_id,
            token=record.token,
            ip_address=record.ip_address,
            created_at=record.created_at,
            expires_at=record.expires_at,
        )
        with Session(self.engine) as session:
            session.add(rec)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                raise DuplicateToken(record.token) from e
            session.refresh(rec)
            return self._to_record(rec)

    def get_by_token(self, token: str) -> Optional[SessionRecord]:
        with Session(self.engine) as session:
            rec = session.exec(select(UserSession).where(UserSession.token == token)).first()
            return self._to_record(rec) if rec else None

    def delete(self, token: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(UserSession).where(UserSession.token == token))
