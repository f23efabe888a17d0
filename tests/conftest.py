"""
DSA Notes - Test Configuration and Fixtures
"""
import os
from typing import Generator, List, Tuple

import pytest
from faker import Faker
from fastapi.testclient import TestClient

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite:///./test_dsa_notes.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['SIGNUP_SECRET_KEY'] = ''
os.environ['SMTP_HOST'] = ''
os.environ['PUBLIC_BASE_URL'] = ''
os.environ['CORS_ALLOW_ORIGINS'] = ''

from app.db import Base, SessionLocal, engine
from app.main import app
from domain.models import Admin
from domain.schemas import AdminCreate
from domain.services import AdminStore
from infra.services import MailDeliveryError, get_mail_sender

fake = Faker()

ADMIN_PASSWORD = 'adminpassword123'


class FakeMailSender:
    """Records outgoing mail instead of talking to SMTP"""

    def __init__(self):
        self.outbox: List[Tuple[str, str, str]] = []
        self.fail = False

    async def send(self, to_email: str, subject: str, body: str) -> None:
        if self.fail:
            raise MailDeliveryError('smtp down')
        self.outbox.append((to_email, subject, body))


@pytest.fixture(scope='function')
def db_session() -> Generator:
    """Fresh tables and a database session for each test"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer() -> FakeMailSender:
    return FakeMailSender()


@pytest.fixture
def client(db_session, mailer) -> Generator[TestClient, None, None]:
    """Test client that does not follow redirects, with mail captured"""
    app.dependency_overrides[get_mail_sender] = lambda: mailer
    with TestClient(app, follow_redirects=False) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session) -> Admin:
    """Create an admin account"""
    return AdminStore(db_session).create(AdminCreate(
        full_name=fake.name(),
        email=f"{fake.user_name()}@example.com",
        username=fake.user_name(),
        password=ADMIN_PASSWORD,
    ))


@pytest.fixture
def admin_client(client: TestClient, admin_user: Admin) -> TestClient:
    """Client whose cookie jar holds an admin session"""
    response = client.post('/admin/login', json={'username': admin_user.username, 'password': ADMIN_PASSWORD})
    assert response.status_code == 303
    assert response.headers['location'] == '/admin/dashboard'
    return client


@pytest.fixture
def follow(client: TestClient):
    """GET the redirect target of a 303 response and return the JSON view found there"""
    def _follow(response):
        assert response.status_code == 303, response.text
        page = client.get(response.headers['location'])
        assert page.status_code == 200, page.text
        return page.json()
    return _follow
