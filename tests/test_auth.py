"""
Tests for login, registration and the session gate
"""
import pytest

from auth import is_public_path


@pytest.mark.unit
class TestPublicPaths:
    """Tests for paths reachable without a session"""

    @pytest.mark.parametrize('path', ['/', '/login', '/register', '/api/auth/login',
                                      '/api/auth/me', '/static/app.js', '/api/health', '/api/ping'])
    def test_public(self, path):
        assert is_public_path(path) is True

    @pytest.mark.parametrize('path', ['/dashboard', '/api/clients', '/api/users', '/logout'])
    def test_protected(self, path):
        assert is_public_path(path) is False


@pytest.mark.integration
class TestSessionGate:
    """Tests for the before_request gate"""

    def test_api_without_session_is_401_json(self, client):
        response = client.get('/api/clients')
        assert response.status_code == 401
        assert response.get_json() == {'success': False, 'error': 'Authentication required',
                                       'redirect': '/login'}

    def test_page_without_session_redirects_to_login(self, client):
        response = client.get('/dashboard')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/login')

    def test_landing_is_public(self, client):
        data = client.get('/').get_json()
        assert data['authenticated'] is False
        assert data['next'] == '/login'

    def test_logged_in_user_skips_login_page(self, auth_client):
        response = auth_client.get('/login')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/dashboard')

    def test_preflight_is_not_blocked(self, client):
        assert client.open('/api/clients', method='OPTIONS').status_code != 401


@pytest.mark.integration
class TestLogin:
    """Tests for login and logout"""

    def test_login_sets_session(self, client, admin_credentials):
        response = client.post('/api/auth/login', json=admin_credentials)
        data = response.get_json()
        assert data['success'] is True
        assert data['user']['role'] == 'admin'
        assert 'password_hash' not in data['user']

        me = client.get('/api/auth/me').get_json()
        assert me['user']['email'] == admin_credentials['email']

    def test_wrong_password(self, client, admin_credentials):
        response = client.post('/api/auth/login',
                               json={'email': admin_credentials['email'], 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['error'] == 'Invalid email or password'

    def test_missing_credentials(self, client):
        assert client.post('/api/auth/login', json={'email': 'a@b.co'}).status_code == 400

    def test_form_login_on_login_path(self, client, admin_credentials):
        response = client.post('/login', data=admin_credentials)
        assert response.status_code == 200
        assert response.get_json()['redirect'] == '/dashboard'

    def test_logout_clears_session(self, auth_client):
        assert auth_client.post('/api/auth/logout').get_json()['redirect'] == '/login'
        assert auth_client.get('/api/clients').status_code == 401

    def test_me_without_session(self, client):
        assert client.get('/api/auth/me').status_code == 401


@pytest.mark.integration
class TestRegistration:
    """Tests for self-registration and role checks"""

    def test_new_accounts_are_solo_technicians(self, technician_client):
        me = technician_client.get('/api/auth/me').get_json()
        assert me['user']['role'] == 'solo_technician'

    def test_duplicate_email_is_409(self, client, admin_credentials):
        response = client.post('/api/auth/register', json=admin_credentials)
        assert response.status_code == 409

    def test_short_password(self, client):
        response = client.post('/api/auth/register', json={'email': 'x@y.co', 'password': '123'})
        assert response.status_code == 400

    def test_technician_cannot_manage_users(self, technician_client):
        response = technician_client.get('/api/users')
        assert response.status_code == 403
        assert response.get_json()['error'] == 'Admin permission required'

    def test_technician_cannot_edit_business_profile(self, technician_client):
        response = technician_client.put('/api/settings/business-profile', json={'name': 'Otro'})
        assert response.status_code == 403

    def test_technician_can_use_the_app(self, technician_client):
        assert technician_client.get('/api/clients').status_code == 200

    def test_dashboard_reports_user(self, technician_client):
        data = technician_client.get('/dashboard').get_json()
        assert data['user']['role'] == 'solo_technician'
        assert data['summary']['pending_orders'] == 0
