"""
Lead model — one row per CRM lead, scoped to a site (tenant).
"""
import uuid

from sqlalchemy import Column, Text, DateTime, Index
from sqlalchemy.sql import func

from nurture.database import Base


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    site_id = Column(Text, nullable=False)
    name = Column(Text, default='')
    email = Column(Text, default='')
    phone = Column(Text, default='')
    status = Column(Text, nullable=False, default='new')
    assignee_id = Column(Text, nullable=True)  # human owner; excluded from automated nurture
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('ix_leads_site_status_updated', 'site_id', 'status', 'updated_at'),
    )
