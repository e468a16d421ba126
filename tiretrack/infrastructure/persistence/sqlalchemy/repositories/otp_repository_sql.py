from typing import Optional
from sqlalchemy import delete, update, select as sa_select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from .....db.models import OTPCode
from .....application.ports.otp_repo import OtpRepository, OtpRecord


class SqlOtpRepository(OtpRepository):
    def __init__(self, engine: Engine):
        self.engine = engine

    def _to_record(self, row: OTPCode) -> OtpRecord:
        return OtpRecord(
            phone=row.phone,
            code=row.code,
            created_at=row.created_at,
            expires_at=row.expires_at,
            last_sent_at=row.last_sent_at,
            attempts_used=row.attempts_used,
        )

    def get(self, phone: str) -> Optional[OtpRecord]:
        with Session(self.engine) as session:
            row = session.get(OTPCode, phone)
            return self._to_record(row) if row else None

    def save(self, record: OtpRecord) -> None:
        row = OTPCode(
            phone=record.phone,
            code=record.code,
            attempts_used=record.attempts_used,
            created_at=record.created_at,
            expires_at=record.expires_at,
            last_sent_at=record.last_sent_at,
        )
        with Session(self.engine) as session:
            session.merge(row)
            try:
                session.commit()
            except IntegrityError:
                # a concurrent insert for the same phone won; overwrite it
                session.rollback()
                session.merge(row)
                session.commit()

    def increment_attempts(self, phone: str, limit: int) -> Optional[int]:
        stmt = (
            update(OTPCode)
            .where(OTPCode.phone == phone, OTPCode.attempts_used < limit)
            .values(attempts_used=OTPCode.attempts_used + 1)
        )
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
            if result.rowcount == 0:
                return None
            return conn.execute(
                sa_select(OTPCode.attempts_used).where(OTPCode.phone == phone)
            ).scalar_one()

    def consume(self, phone: str, code: str) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(OTPCode).where(OTPCode.phone == phone, OTPCode.code == code)
            )
            return result.rowcount == 1

    def delete(self, phone: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(OTPCode).where(OTPCode.phone == phone))
