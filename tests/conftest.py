"""Shared test fixtures: an app on in-memory SQLite with default packages seeded."""

from types import SimpleNamespace

import pytest

from gym_app import create_app, db
from gym_app.seed import seed_defaults


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'SECRET_KEY': 'test-secret',
    'ADMIN_USERNAME': 'admin',
    'ADMIN_PASSWORD': 'test-password',
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        seed_defaults()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    """App context for tests that call the services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app):
    """Test client with an admin session."""
    client = app.test_client()
    resp = client.post('/api/auth/login', json={'username': 'admin', 'password': 'test-password'})
    assert resp.status_code == 200
    return client


def make_period(start, end, amount=None, package_name='Bulanan'):
    """Stand-in for a MembershipPeriod row, for the pure period functions."""
    transaction = SimpleNamespace(amount=amount) if amount is not None else None
    return SimpleNamespace(
        start_date=start,
        end_date=end,
        package_name=package_name,
        transaction=transaction,
    )


@pytest.fixture
def period():
    return make_period


@pytest.fixture
def catalog(admin_client):
    """Package ids by name plus the Cash payment method id."""
    packages = admin_client.get('/api/packages').get_json()
    methods = admin_client.get('/api/payment-methods').get_json()
    ids = {p['name']: p['id'] for p in packages}
    ids['Cash'] = next(m['id'] for m in methods if m['name'] == 'Cash')
    return ids
