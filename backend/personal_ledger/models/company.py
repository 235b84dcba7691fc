from sqlalchemy import Column, String, DateTime, Uuid, UniqueConstraint, func
import uuid
from ..core.db import Base

class Company(Base):
    __tablename__ = "companies"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)
    description = Column(String(100), nullable=True)
    website = Column(String(50), nullable=True)  # URL by convention, not validated
    logo = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("name", name="uq_companies_name"),
    )
