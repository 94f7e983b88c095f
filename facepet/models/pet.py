from sqlalchemy import Column, Text, String, Integer, Boolean, Date, DateTime, ForeignKey, Uuid
import uuid
from facepet.core.database import Base
from facepet.utils.clock import utcnow

class Gender(Base):
    __tablename__ = "genders"

    id = Column(Integer, primary_key=True, autoincrement=False)
    en = Column(String(50), nullable=False)
    he = Column(String(50), nullable=False)

class Breed(Base):
    __tablename__ = "breeds"

    id = Column(Integer, primary_key=True, autoincrement=False)
    en = Column(String(100), nullable=False)
    he = Column(String(100), nullable=False)

class Owner(Base):
    __tablename__ = "owners"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    home_address = Column(Text, nullable=False)
    # No name flag: the owner name is always shown
    is_phone_private = Column(Boolean, nullable=False, default=False)
    is_email_private = Column(Boolean, nullable=False, default=False)
    is_address_private = Column(Boolean, nullable=False, default=False)

class Vet(Base):
    __tablename__ = "vets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    is_name_private = Column(Boolean, nullable=False, default=False)
    is_phone_private = Column(Boolean, nullable=False, default=False)
    is_email_private = Column(Boolean, nullable=False, default=False)
    is_address_private = Column(Boolean, nullable=False, default=False)

class Pet(Base):
    __tablename__ = "pets"

    # Taken from the tag pool, never generated here
    id = Column(Uuid, primary_key=True)
    name = Column(String(255), nullable=False)
    image_url = Column(Text, nullable=False)
    gender_id = Column(Integer, ForeignKey("genders.id", ondelete="cascade"), nullable=False, index=True)
    breed_id = Column(Integer, ForeignKey("breeds.id", ondelete="cascade"), nullable=False, index=True)
    birth_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    user_id = Column(Uuid, ForeignKey("user.id", ondelete="cascade"), nullable=False, index=True)
    owner_id = Column(Uuid, ForeignKey("owners.id", ondelete="cascade"), nullable=False, index=True)
    vet_id = Column(Uuid, ForeignKey("vets.id", ondelete="set null"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

class PetIdPool(Base):
    __tablename__ = "pet_ids_pool"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    is_used = Column(Boolean, nullable=False, default=False)
