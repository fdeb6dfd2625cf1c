"""
Pytest fixtures for MedStock backend tests.

Provides the app on an in-memory database, per-test table wipe, seeded
roles / movement types, user factories and auth-header helpers.
"""

import pytest
from medstock import create_app
from medstock.extensions import db
from medstock.models import User, Role, Item, MovementType
from medstock.services.auth_service import hash_password
from medstock.services import permission_service, ledger_service


DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': 'test',
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
    """Fresh data for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def seed(db_session):
    """Default roles, their permission rows and the movement type catalog."""
    permission_service.create_default_roles()
    permission_service.assign_default_role_permissions()
    ledger_service.ensure_movement_types()
    db_session.commit()


@pytest.fixture(scope='function')
def make_user(db_session, seed):
    """Factory: make_user("nurse", role="VIEWER")."""
    def _make(username: str, role: str = "USER", *, password: str = DEFAULT_PASSWORD, is_active: bool = True) -> User:
        role_obj = db_session.query(Role).filter_by(name=role).one()
        user = User(
            username=username,
            email=f"{username}@hospital.test",
            full_name=username.replace("_", " ").title(),
            password_hash=hash_password(password, rounds=4),
            role_id=role_obj.id,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def admin_user(make_user):
    return make_user("admin", role="ADMIN")


@pytest.fixture(scope='function')
def superadmin_user(make_user):
    return make_user("superadmin", role="SUPER_ADMIN")


@pytest.fixture(scope='function')
def viewer_user(make_user):
    return make_user("viewer", role="VIEWER")


@pytest.fixture(scope='function')
def movement_types(seed, db_session) -> dict:
    """type_code -> MovementType"""
    return {mt.type_code: mt for mt in db_session.query(MovementType).all()}


@pytest.fixture(scope='function')
def item(db_session):
    item = Item(name="Dell OptiPlex 7090", serial="SN-001", quantity=0, unit="piece")
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def add(movement_types, admin_user):
    """Shortcut: add("IN", item, 10) records a movement by admin_user."""
    def _add(type_code: str, target: Item, quantity: int, **kwargs):
        return ledger_service.add_movement(
            item_id=target.id,
            movement_type_id=movement_types[type_code].id,
            quantity=quantity,
            user_id=admin_user.id,
            **kwargs,
        )
    return _add


def get_auth_token(client, username: str, password: str = DEFAULT_PASSWORD) -> str:
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


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.username))


@pytest.fixture(scope='function')
def viewer_headers(client, viewer_user):
    return auth_headers(get_auth_token(client, viewer_user.username))


@pytest.fixture(scope='function')
def superadmin_headers(client, superadmin_user):
    return auth_headers(get_auth_token(client, superadmin_user.username))
