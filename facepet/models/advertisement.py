from sqlalchemy import Column, Text, String, Integer, DateTime, ForeignKey, Enum, Uuid
import enum
import uuid
from facepet.core.database import Base
from facepet.utils.clock import utcnow

class AdType(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"

class AdStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SCHEDULED = "scheduled"

class Advertisement(Base):
    __tablename__ = "advertisements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    type = Column(Enum(AdType, name="ad_type", values_callable=lambda e: [m.value for m in e]), nullable=False)
    content = Column(Text, nullable=False)  # URL of the image or video
    duration = Column(Integer, nullable=False, default=5)  # seconds
    status = Column(
        Enum(AdStatus, name="ad_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AdStatus.INACTIVE,
    )
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(Uuid, ForeignKey("user.id", ondelete="set null"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
