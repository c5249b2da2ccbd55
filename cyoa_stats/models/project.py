"""
CYOA Stats — Project model.

One row per registered widget project. Only the digest of the owner's
secret key is stored; the raw key is handed back once at registration.
"""

from sqlalchemy import Column, String, DateTime, func

from cyoa_stats.database import Base


class Project(Base):
    __tablename__ = "projects"

    project_id = Column(String(36), primary_key=True)
    secret_key_hash = Column(String(64), nullable=False, index=True)
    email = Column(String(320), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Project {self.project_id}>"
