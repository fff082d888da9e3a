#!/usr/bin/env python3
"""
Seed demo leads + conversations covering every cadence branch.

Creates one lead per scenario on a single site:
  1. Untagged, silent 8 days          → reminder (resumed)
  2. Untagged, silent exactly 7 days  → reminder (initial)
  3. Reminder sent 5 days ago         → provide_value
  4. Value sent 10 days ago           → breakup
  5. Break-up sent 8 days ago, contacted → marked cold
  6. Break-up sent 8 days ago, qualified → sequence completed
  7. Lead replied last                → paused
  8. Assigned to a human              → excluded
  9. Same lead messaged on another site only → no history here

Usage:
    python scripts/seed_demo_leads.py                    # seed site "demo-site"
    python scripts/seed_demo_leads.py --site acme --clear

Requires: DATABASE_URL set (or defaults to sqlite:///local.db).
"""
import sys
import os
import uuid
import argparse
from datetime import datetime, timezone, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nurture.database import get_session, engine, Base
from nurture.models.conversation import Conversation
from nurture.models.lead import Lead
from nurture.models.message import Message
from nurture.models.nurture_run import NurtureRun  # noqa: F401  (registers table)

# (name, lead status, assignee, last role, days ago, tag)
SCENARIOS = [
    ('Resumed Rita',     'contacted', None,      'assistant', 8,  None),
    ('Initial Ivan',     'contacted', None,      'assistant', 7,  None),
    ('Value Vera',       'qualified', None,      'assistant', 5,  'reminder'),
    ('Breakup Bruno',    'contacted', None,      'assistant', 10, 'provide_value'),
    ('Cold Carla',       'contacted', None,      'assistant', 8,  'breakup'),
    ('Completed Cem',    'qualified', None,      'assistant', 8,  'breakup'),
    ('Replied Rafa',     'contacted', None,      'user',      30, 'reminder'),
    ('Assigned Ana',     'qualified', 'user-42', 'assistant', 20, None),
]

SEED_PREFIX = 'seed-'


def make_id():
    return SEED_PREFIX + str(uuid.uuid4())


def clear(session):
    session.query(Message).filter(Message.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    session.query(Conversation).filter(Conversation.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    session.query(Lead).filter(Lead.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    session.commit()


def seed(session, site_id):
    now = datetime.now(timezone.utc)
    for name, status, assignee, role, days_ago, tag in SCENARIOS:
        lead = Lead(id=make_id(), site_id=site_id, name=name, status=status, assignee_id=assignee,
                    email=f"{name.split()[1].lower()}@example.com")
        convo = Conversation(id=make_id(), site_id=site_id, lead_id=lead.id)
        msg = Message(
            id=make_id(), conversation_id=convo.id, lead_id=lead.id, role=role,
            content=f'Demo message for {name}',
            custom_data={'sequence_stage': tag} if tag else None,
            created_at=now - timedelta(days=days_ago),
        )
        session.add_all([lead, convo, msg])
        print(f"  {name:<16} {status:<10} last={role}/{tag or '-'} {days_ago}d ago")

    # Only talked to on another tenant: must look history-less here
    lead = Lead(id=make_id(), site_id=site_id, name='Elsewhere Eli', status='contacted')
    convo = Conversation(id=make_id(), site_id=f'{site_id}-other', lead_id=lead.id)
    msg = Message(id=make_id(), conversation_id=convo.id, lead_id=lead.id, role='assistant',
                  created_at=now - timedelta(days=20))
    session.add_all([lead, convo, msg])
    print(f"  {'Elsewhere Eli':<16} contacted  (messages on {site_id}-other only)")

    session.commit()


def main():
    parser = argparse.ArgumentParser(description='Seed demo nurture data')
    parser.add_argument('--site', default='demo-site')
    parser.add_argument('--clear', action='store_true', help='Delete previously seeded rows first')
    args = parser.parse_args()

    Base.metadata.create_all(engine)
    session = get_session()
    try:
        if args.clear:
            clear(session)
            print("Cleared seeded rows")
        print(f"Seeding site '{args.site}':")
        seed(session, args.site)
    finally:
        session.close()


if __name__ == '__main__':
    main()
