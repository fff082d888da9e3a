"""
NurtureRun model — audit trail of nurture cycle executions, one row per cycle.
"""
import uuid

from sqlalchemy import Column, Text, Integer, DateTime, JSON
from sqlalchemy.sql import func

from nurture.database import Base


class NurtureRun(Base):
    __tablename__ = 'nurture_runs'

    id = Column(Text, primary_key=True, default=lambda: str(uuid.uuid4()))
    site_id = Column(Text, nullable=False, index=True)
    status = Column(Text, nullable=False, default='running')
    params = Column(JSON, default=dict)
    total_checked = Column(Integer, default=0)
    considered = Column(Integer, default=0)
    excluded_by_assignee = Column(Integer, default=0)
    qualified_leads = Column(Integer, default=0)
    follow_ups_started = Column(Integer, default=0)
    stats = Column(JSON, default=dict)         # {reminder, provide_value, breakup, resumed}
    terminal = Column(JSON, default=dict)      # {cold, completed}
    errors = Column(JSON, default=list)
    threshold_date = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    finished_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'site_id': self.site_id,
            'status': self.status,
            'params': self.params or {},
            'total_checked': self.total_checked or 0,
            'considered': self.considered or 0,
            'excluded_by_assignee': self.excluded_by_assignee or 0,
            'qualified_leads': self.qualified_leads or 0,
            'follow_ups_started': self.follow_ups_started or 0,
            'stats': self.stats or {},
            'terminal': self.terminal or {},
            'errors': self.errors or [],
            'threshold_date': self.threshold_date,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
        }
