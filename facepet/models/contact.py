from sqlalchemy import Column, Text, String, DateTime, Uuid
import uuid
from facepet.core.database import Base
from facepet.utils.clock import utcnow

class ContactSubmission(Base):
    __tablename__ = "contact_submissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(50), nullable=False, default="pending") # pending, read, replied
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
