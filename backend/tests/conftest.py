"""
Pytest fixtures for garment ERP backend tests.

Provides an in-memory database app, test client, per-test table wipe,
users of both roles and auth helpers.
"""

import io

import pytest
from garment_erp import create_app
from garment_erp.extensions import db
from garment_erp.services import auth_service, catalog_service, session_service


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp('uploads')),
        'BCRYPT_ROUNDS': 4,
        'LOGIN_RATE_LIMIT_MAX': 3,
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
def admin_user(db_session):
    return auth_service.create_user("admin", "admin@fulai.com", "admin123", role="admin")


@pytest.fixture(scope='function')
def regular_user(db_session):
    return auth_service.create_user("worker", "worker@fulai.com", "worker123")


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(session_service.issue_token(admin_user))


@pytest.fixture(scope='function')
def user_headers(regular_user):
    return auth_headers(session_service.issue_token(regular_user))


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


def make_variants(*pairs):
    """make_variants(("Black", "S", 5), ("White", "M", 0)) -> variant dicts"""
    return [{"color": c, "size": s, "quantity": q} for c, s, q in pairs]


def create_product(serial_number="FL-001", price="99.50", composition="100% cotton",
                   variants=None, creator=None):
    """Create a product through the catalog service."""
    return catalog_service.create_product_with_variants(
        payload={"serial_number": serial_number, "price": price, "composition": composition},
        variants=variants if variants is not None else make_variants(("Black", "S", 5), ("White", "M", 3)),
        creator=creator,
    )


def png_upload(name="shirt.png", size=64, mimetype="image/png"):
    """A (stream, filename, content_type) tuple for multipart test requests."""
    return (io.BytesIO(b"\x89PNG\r\n\x1a\n" + b"\x00" * size), name, mimetype)
