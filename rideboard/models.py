from sqlalchemy import Column, String, Boolean, ForeignKey, TIMESTAMP, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql.expression import text
from sqlalchemy.sql import func  # Import func to use for timestamp
from .database import Base
import uuid


def _new_id():
    return str(uuid.uuid4())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_new_id)
    full_name = Column(String, nullable=False)
    photo_url = Column(String, nullable=True)
    profile_zip = Column(String(5), nullable=True, index=True)
    profile_zip_updated_at = Column(TIMESTAMP(timezone=True), nullable=True)
    notify_new_driver = Column(Boolean, nullable=False, server_default=text("false"))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=text('now()'))


class DriverStatus(Base):
    __tablename__ = "driver_status"

    # One row per driver, upserted whenever availability changes
    user_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id"), primary_key=True)
    state = Column(String, nullable=False, server_default=text("'unavailable'"))
    current_zip = Column(String(5), nullable=True, index=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=False), primary_key=True, default=_new_id)
    user_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id"), nullable=False)
    related_user_id = Column(UUID(as_uuid=False), ForeignKey("profiles.id"), nullable=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    link = Column(String, nullable=True)
    read = Column(Boolean, nullable=False, server_default=text("false"))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    # Serves the debounce lookup; deliberately not unique
    __table_args__ = (
        Index("ix_notifications_debounce", "user_id", "related_user_id", "type", "created_at"),
    )
