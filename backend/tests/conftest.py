"""
Pytest fixtures for SIJUK backend tests.

Provides test database setup, two independent owner accounts, and the test client.
"""

import pytest
from sijuk import create_app
from sijuk.extensions import db
from sijuk.services.auth_service import create_user


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_LOG_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def owner(db_session):
    """First owner account (Bu Sari)."""
    return create_user(name="Bu Sari", username="sari", email="sari@example.com", password=PASSWORD)


@pytest.fixture(scope='function')
def other_owner(db_session):
    """Second, unrelated owner account."""
    return create_user(name="Pak Budi", username="budi", email="budi@example.com", password=PASSWORD)


@pytest.fixture(scope='function')
def owner_headers(client, owner):
    return auth_headers(get_auth_token(client, "sari", PASSWORD))


@pytest.fixture(scope='function')
def other_headers(client, other_owner):
    return auth_headers(get_auth_token(client, "budi", PASSWORD))


@pytest.fixture(scope='function')
def flour(client, owner_headers):
    """Tepung at Rp 12.000/kg with 10 kg in stock."""
    resp = client.post('/api/materials', json={
        'name': 'Tepung Terigu',
        'unit': 'kg',
        'buy_price_cents': 1_200_000,
        'stock': '10',
    }, headers=owner_headers)
    assert resp.status_code == 201
    return resp.json


@pytest.fixture(scope='function')
def oil(client, owner_headers):
    """Minyak goreng at Rp 18.000/liter with 5 liter in stock."""
    resp = client.post('/api/materials', json={
        'name': 'Minyak Goreng',
        'unit': 'liter',
        'buy_price_cents': 1_800_000,
        'stock': '5',
    }, headers=owner_headers)
    assert resp.status_code == 201
    return resp.json


@pytest.fixture(scope='function')
def net_warung(client, owner_headers):
    """Net scheme warung billed Rp 2.000 per pack."""
    resp = client.post('/api/warungs', json={
        'name': 'Warung Bu Tini',
        'address': 'Jl. Melati 3',
        'price_scheme': 'net',
        'net_price_cents': 200_000,
    }, headers=owner_headers)
    assert resp.status_code == 201
    return resp.json


@pytest.fixture(scope='function')
def commission_warung(client, owner_headers):
    """Commission scheme warung: Rp 2.500 consumer price, 20% commission."""
    resp = client.post('/api/warungs', json={
        'name': 'Toko Makmur',
        'address': 'Pasar Baru blok C',
        'price_scheme': 'commission',
        'selling_price_cents': 250_000,
        'commission_bps': 2000,
    }, headers=owner_headers)
    assert resp.status_code == 201
    return resp.json


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
