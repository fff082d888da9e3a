"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from nurture.database import Base
from nurture.sequencing.base import LeadSummary, MessageSummary

# Fixed clock for every test that classifies
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _create_schema(engine):
    import nurture.models.lead
    import nurture.models.conversation
    import nurture.models.message
    import nurture.models.nurture_run
    Base.metadata.create_all(engine)


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created (single shared connection)."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    _create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_engine):
    """
    Route get_session() calls inside nurture.services.db to the test engine.

    The module does `from nurture.database import get_session` at import time,
    so the local binding is what has to be patched. Each call returns a new
    session so close() inside the production code is harmless.
    """
    TestSession = sessionmaker(bind=db_engine)
    with patch('nurture.services.db.get_session', side_effect=lambda: TestSession()):
        yield TestSession


@pytest.fixture
def threaded_db(tmp_path):
    """
    File-backed SQLite for engine runs that use the worker pool.

    Worker threads each check out their own connection, which an in-memory
    StaticPool database can't offer safely.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'nurture.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    _create_schema(engine)
    TestSession = sessionmaker(bind=engine)
    with patch('nurture.services.db.get_session', side_effect=lambda: TestSession()):
        yield TestSession
    engine.dispose()


class Seeder:
    """Inserts leads/conversations/messages through short-lived sessions."""

    def __init__(self, session_factory, now=NOW):
        self.session_factory = session_factory
        self.now = now
        self._counter = 0

    def _add(self, *rows):
        session = self.session_factory()
        try:
            session.add_all(rows)
            session.commit()
        finally:
            session.close()

    def lead(self, site_id='site-1', status='contacted', assignee_id=None, lead_id=None, updated_rank=None, **kw):
        """Create a lead. Lower updated_rank = more recently updated (default: creation order, newest first)."""
        from nurture.models.lead import Lead
        self._counter += 1
        rank = self._counter if updated_rank is None else updated_rank
        lead_id = lead_id or f'lead-{self._counter:03d}'
        self._add(Lead(
            id=lead_id, site_id=site_id, status=status, assignee_id=assignee_id,
            name=kw.pop('name', f'Lead {self._counter}'),
            updated_at=self.now - timedelta(minutes=rank),
            **kw,
        ))
        return lead_id

    def message(self, lead_id, days_ago, role='assistant', tag=None, site_id='site-1',
                custom_data=None, message_id=None):
        """Create a conversation on `site_id` with one message `days_ago` before now."""
        from nurture.models.conversation import Conversation
        from nurture.models.message import Message
        self._counter += 1
        convo_id = f'conv-{self._counter:03d}'
        message_id = message_id or f'msg-{self._counter:03d}'
        if custom_data is None and tag is not None:
            custom_data = {'sequence_stage': tag}
        self._add(
            Conversation(id=convo_id, site_id=site_id, lead_id=lead_id),
            Message(
                id=message_id, conversation_id=convo_id, lead_id=lead_id, role=role,
                custom_data=custom_data, created_at=self.now - timedelta(days=days_ago),
            ),
        )
        return message_id


@pytest.fixture
def seed(patch_get_session):
    """Seeder bound to the in-memory test database."""
    return Seeder(patch_get_session)


@pytest.fixture
def threaded_seed(threaded_db):
    """Seeder bound to the file-backed test database."""
    return Seeder(threaded_db)


@pytest.fixture
def now():
    """The fixed clock Seeder and make_message build timestamps from."""
    return NOW


@pytest.fixture
def make_lead():
    """Factory fixture — builds a LeadSummary without touching the DB."""
    def _make(lead_id='lead-1', status='contacted', assignee_id=None, site_id='site-1'):
        return LeadSummary(id=lead_id, site_id=site_id, status=status, assignee_id=assignee_id)
    return _make


@pytest.fixture
def make_message():
    """Factory fixture — builds a MessageSummary `days_ago` before NOW."""
    def _make(days_ago, role='assistant', tag=None, lead_id='lead-1', message_id='msg-1', custom_data=None):
        if custom_data is None:
            custom_data = {'sequence_stage': tag} if tag is not None else {}
        return MessageSummary(
            id=message_id, lead_id=lead_id, role=role,
            created_at=NOW - timedelta(days=days_ago), custom_data=custom_data,
        )
    return _make


@pytest.fixture
def app():
    """Flask test app."""
    from nurture import create_app
    app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c
