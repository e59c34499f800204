"""
Pytest configuration and shared fixtures
"""
import io
import sys
import pytest
from pathlib import Path
from unittest.mock import Mock

import openpyxl

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def app_config(tmp_path):
    """Testing configuration bound to a temporary SQLite file"""
    from config import TestingConfig

    class _TestConfig(TestingConfig):
        DATABASE_URL = f"sqlite:///{tmp_path / 'servitech.db'}"

    return _TestConfig


@pytest.fixture
def app(app_config):
    """Flask app with a fresh, seeded database"""
    from app_init import create_app
    flask_app = create_app(app_config)
    yield flask_app


@pytest.fixture
def client(app):
    """Unauthenticated test client"""
    return app.test_client()


@pytest.fixture
def admin_credentials():
    from database.seed import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
    return {'email': DEFAULT_ADMIN_EMAIL, 'password': DEFAULT_ADMIN_PASSWORD}


@pytest.fixture
def auth_client(client, admin_credentials):
    """Test client logged in as the seeded admin"""
    response = client.post('/api/auth/login', json=admin_credentials)
    assert response.status_code == 200
    return client


@pytest.fixture
def technician_client(app):
    """Test client logged in as a freshly registered solo technician"""
    tech_client = app.test_client()
    response = tech_client.post('/api/auth/register', json={
        'email': 'tecnico@example.com',
        'password': 'secreto123',
        'full_name': 'Tecnico Prueba'
    })
    assert response.status_code == 201
    return tech_client


@pytest.fixture
def db(app):
    """Database session committed when the test finishes"""
    from database.connection import get_db_session
    with get_db_session() as session:
        yield session


@pytest.fixture
def sample_client_data():
    """Fixture providing sample client data"""
    return {
        'national_id': '1144556677',
        'full_name': 'María Fernanda López',
        'phone': '3001234567',
        'email': 'maria@example.com',
        'address': 'Calle 5 # 10-20, Cali',
    }


@pytest.fixture
def sample_intake_data():
    """Fixture providing a new-service intake form"""
    return {
        'national_id': '1144556677',
        'full_name': 'María Fernanda López',
        'phone': '3001234567',
        'address': 'Calle 5 # 10-20, Cali',
        'appliance_type': 'Nevera',
        'brand': 'Samsung',
        'model': 'RT38',
        'serial_number': 'SN-SAMS-0001',
        'reported_issue': 'No enfría la parte inferior',
        'date': '2024-06-10',
        'time': '10:30',
        'priority': 'HIGH',
    }


@pytest.fixture
def sample_part_data():
    """Fixture providing sample spare part data"""
    return {
        'code': 'RP-TERM-01',
        'name': 'Termostato nevera',
        'location': 'Estante A2',
        'stock_level': 10,
        'min_stock': 2,
        'unit_cost': 20000,
        'unit_price': 35000,
    }


@pytest.fixture
def mock_gemini():
    """GeminiService stand-in; tests set return values or side effects"""
    from ai_service import GeminiService
    gemini = Mock(spec=GeminiService)
    gemini.is_available.return_value = True
    return gemini


@pytest.fixture
def make_workbook():
    """Build xlsx bytes from a header row and data rows"""
    def _make(headers, rows):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(headers)
        for row in rows:
            ws.append(row)
        output = io.BytesIO()
        wb.save(output)
        return output.getvalue()
    return _make
