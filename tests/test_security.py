"""
Tests for security middleware: secret key handling, headers and error envelopes
"""
import pytest
from unittest.mock import Mock

from security import (
    is_strong_secret,
    resolve_secret_key,
    internal_error_body,
    missing_settings,
    SECURITY_HEADERS,
)


STRONG_KEY = '9f2c1e7a4b8d3f6a0c5e2b9d7f1a4c8e3b6d0f2a'


@pytest.mark.unit
class TestSecretKey:
    """Tests for secret key strength and fallback"""

    def test_strong_secret(self):
        assert is_strong_secret(STRONG_KEY) is True

    @pytest.mark.parametrize('key', [None, '', 'short', 'dev-secret-key-' + 'x' * 40])
    def test_weak_secrets(self, key):
        assert is_strong_secret(key) is False

    def test_strong_key_is_kept(self):
        app = Mock(testing=False, debug=False)
        assert resolve_secret_key(app, {'SECRET_KEY': STRONG_KEY}) == STRONG_KEY

    def test_weak_key_replaced_outside_testing(self):
        app = Mock(testing=False, debug=True)
        key = resolve_secret_key(app, {'SECRET_KEY': 'changeme'})
        assert key != 'changeme'
        assert len(key) == 64

    def test_testing_key_accepted_as_configured(self):
        app = Mock(testing=True, debug=True)
        assert resolve_secret_key(app, {'SECRET_KEY': 'test-key'}) == 'test-key'


@pytest.mark.unit
class TestErrorBodies:

    def test_internal_error_hides_details(self):
        body = internal_error_body(ValueError('boom'))
        assert body['success'] is False
        assert 'details' not in body

    def test_internal_error_details_in_debug(self):
        body = internal_error_body(ValueError('boom'), include_details=True)
        assert body['details'] == 'boom'
        assert body['type'] == 'ValueError'

    def test_missing_production_settings(self):
        missing = missing_settings({'SECRET_KEY': STRONG_KEY, 'DATABASE_URL': 'postgresql://db'})
        assert missing == ['GEMINI_API_KEY', 'GCP_PROJECT_ID']


@pytest.mark.integration
class TestSecurityMiddleware:

    def test_security_headers_on_every_response(self, client):
        response = client.get('/api/health')
        for header, value in SECURITY_HEADERS.items():
            assert response.headers[header] == value

    def test_no_hsts_in_debug(self, client):
        response = client.get('/api/health')
        assert 'Strict-Transport-Security' not in response.headers

    def test_unknown_api_path_returns_json_404(self, auth_client):
        response = auth_client.get('/api/does-not-exist')
        assert response.status_code == 404
        data = response.get_json()
        assert data['success'] is False
        assert data['error'] == 'Not Found'

    def test_wrong_method_returns_json_405(self, client):
        response = client.delete('/api/health')
        assert response.status_code == 405
        assert response.get_json()['error'] == 'Method Not Allowed'

    def test_missing_order_maps_to_404(self, auth_client):
        response = auth_client.get('/api/service-orders/missing-order-id')
        assert response.status_code == 404
        assert response.get_json()['success'] is False
