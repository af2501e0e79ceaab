from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String

from ..database import Base


class User(Base):
    """SQLAlchemy model for vessel operators."""

    __tablename__ = "users"

    uuid = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    handle = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    vessel_uuid = Column(String(36), ForeignKey("vessels.uuid"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
