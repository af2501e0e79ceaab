from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Float, String, Text

from ..database import Base


class Vessel(Base):
    """SQLAlchemy model for a registered vessel."""

    __tablename__ = "vessels"

    uuid = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name = Column(String, index=True, nullable=False)
    flag_nation = Column(String)
    port_of_registry = Column(String)
    build_details = Column(Text)
    official_number = Column(String)
    hull_id_number = Column(String)
    keel_offset = Column(Float, default=0.0)
    waterline_offset = Column(Float, default=0.0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
