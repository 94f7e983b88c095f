from sqlalchemy import Column, Text, String, Float, Integer, Boolean, DateTime, JSON, ForeignKey, Uuid
import uuid
from facepet.core.database import Base
from facepet.utils.clock import utcnow

class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    image_url = Column(Text, nullable=False, default="")
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    contact_address = Column(Text, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    rating = Column(Float, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Uuid, ForeignKey("user.id", ondelete="set null"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False, default=0)
    points = Column(Integer, nullable=False, default=0)
    image_url = Column(Text, nullable=False, default="")
    valid_from = Column(DateTime(timezone=True), nullable=False)
    valid_to = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    business_ids = Column(JSON, nullable=False, default=list)  # Array of business ids
    created_by = Column(Uuid, ForeignKey("user.id", ondelete="set null"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
