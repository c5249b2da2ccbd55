"""
CYOA Stats — Log entry model.

Append-only beacon log. ``(project_id, data_hash)`` is unique so that a
replayed beacon is absorbed by the store instead of creating a second row.
"""

from sqlalchemy import (
    BigInteger, Column, DateTime, Integer, String, Text, UniqueConstraint, func,
)

from cyoa_stats.database import Base


class LogEntry(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, autoincrement=True)

    project_id = Column(String(255), nullable=False, index=True)
    uid = Column(String(64), nullable=False)           # hash(ip + pepper)

    # Columns lifted out of the payload for reporting
    event_type = Column(Text, nullable=False)
    current_url = Column(Text, nullable=False)
    referrer = Column(Text, nullable=True)
    time_on_page = Column(BigInteger, nullable=False, default=0)   # ms
    event_timestamp = Column(Text, nullable=False)

    # Canonical JSON string exactly as hashed
    data = Column(Text, nullable=False)
    data_hash = Column(String(64), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    log_type = Column(String(10), nullable=False, default="log")   # "log" or "csp"

    __table_args__ = (
        UniqueConstraint("project_id", "data_hash", name="uq_logs_project_data_hash"),
    )

    def __repr__(self):
        return f"<LogEntry {self.project_id}/{self.event_type} {self.data_hash[:8]}>"
