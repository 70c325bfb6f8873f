"""SQLAlchemy ORM models for the application document store"""

from sqlalchemy import Column, DateTime, Integer, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ApplicationDocument(Base):
    """Schemaless application record keyed by application (user) id"""

    __tablename__ = "application_document"

    id = Column(Text, primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
