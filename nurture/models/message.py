"""
Message model — one row per message in a conversation.

custom_data is an open JSON blob shared with other workflows. The nurture
cadence only owns the 'sequence_stage' key inside it.
"""
import uuid

from sqlalchemy import Column, Text, DateTime, JSON, ForeignKey, Index
from sqlalchemy.sql import func

from nurture.database import Base


class Message(Base):
    __tablename__ = 'messages'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    conversation_id = Column(Text, ForeignKey('conversations.id'), nullable=False)
    lead_id = Column(Text, ForeignKey('leads.id'), nullable=True)
    role = Column(Text, nullable=False)  # user / assistant
    content = Column(Text, default='')
    custom_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('ix_messages_lead_created', 'lead_id', 'created_at'),
    )
