"""
SQL-backed send log (SQLite by default).

Each append is one INSERT, so unlike the JSON file backend concurrent
writers cannot drop each other's entries.
"""

from sqlalchemy import create_engine, Column, String, Text, Integer
from sqlalchemy.orm import declarative_base, sessionmaker
from typing import List, Optional
import logging

from shuttle_sms.core.config import settings
from shuttle_sms.core.models import DispatchResult
from shuttle_sms.database.log_store import LogStore

logger = logging.getLogger(__name__)

Base = declarative_base()


class SmsLogEntry(Base):
    """One row per dispatch attempt"""
    __tablename__ = "sms_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    line_index = Column(Integer, nullable=False)
    timestamp = Column(String(64), nullable=False)
    phone = Column(String(255), nullable=False, default="")
    message = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False)
    error_type = Column(String(32), nullable=True)
    error_code = Column(String(64), nullable=False, default="")
    error_message = Column(Text, nullable=False, default="")

    def to_result(self) -> DispatchResult:
        return DispatchResult(
            line_index=self.line_index,
            timestamp=self.timestamp,
            phone=self.phone,
            message=self.message,
            status=self.status,
            error_type=self.error_type,
            error_code=self.error_code,
            error_message=self.error_message,
        )


class SqlLogStore(LogStore):
    """Send log stored in a relational table"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.LOG_DATABASE_URL
        self.engine = create_engine(self.database_url, pool_pre_ping=True)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def ensure_exists(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Send log table ready at {self.engine.url.render_as_string(hide_password=True)}")

    def append(self, entry: DispatchResult) -> None:
        db = self.SessionLocal()
        try:
            db.add(SmsLogEntry(
                line_index=entry.line_index,
                timestamp=entry.timestamp,
                phone=entry.phone,
                message=entry.message,
                status=entry.status,
                error_type=entry.error_type,
                error_code=entry.error_code,
                error_message=entry.error_message,
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def read_all(self) -> List[DispatchResult]:
        db = self.SessionLocal()
        try:
            rows = db.query(SmsLogEntry).order_by(SmsLogEntry.id.desc()).all()
            return [row.to_result() for row in rows]
        finally:
            db.close()

    def close(self):
        """Close database connections"""
        self.engine.dispose()
