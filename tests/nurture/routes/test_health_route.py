"""Tests for GET /health."""
from unittest.mock import patch


class TestHealth:

    def test_ok_when_database_answers(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        assert resp.get_json() == {'status': 'ok', 'database': 'ok'}

    def test_degraded_when_database_down(self, client):
        with patch('nurture.routes.health.check_connection', return_value=False):
            resp = client.get('/health')
        assert resp.status_code == 503
        assert resp.get_json()['database'] == 'unavailable'
