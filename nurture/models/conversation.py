"""
Conversation model — groups messages; the only place a message's site is recorded.
"""
import uuid

from sqlalchemy import Column, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from nurture.database import Base


class Conversation(Base):
    __tablename__ = 'conversations'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    site_id = Column(Text, nullable=False, index=True)
    lead_id = Column(Text, ForeignKey('leads.id'), nullable=True)
    channel = Column(Text, default='email')  # email / whatsapp / web
    created_at = Column(DateTime(timezone=True), server_default=func.now())
