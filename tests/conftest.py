import os

# Must be set before storefront modules read settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SECRET_KEY"] = "test-secret-key"

import uuid
from decimal import Decimal
from pathlib import Path

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.config import get_settings
from storefront.core.exceptions import UpstreamError
from storefront.core.session import SessionStore
from storefront.db.base import Base
from storefront.db.models import Product
from storefront.dependencies import get_db
from storefront.main import create_app
from storefront.services.auth_service import signup
from storefront.services.payment_service import CheckoutSession

PASSWORD = "secret123"


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, html):
        if self.fail:
            raise UpstreamError("SMTP unavailable")
        self.sent.append({"to": to_email, "subject": subject, "html": html})


class FakeGateway:
    def __init__(self):
        self.calls = []
        self.fail = False

    def create_checkout_session(self, line_items, success_url, cancel_url):
        if self.fail:
            raise UpstreamError("Payment provider unavailable")
        self.calls.append(
            {"line_items": line_items, "success_url": success_url, "cancel_url": cancel_url}
        )
        return CheckoutSession(id="cs_test_123", url="https://checkout.example/cs_test_123")


@pytest.fixture()
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "data"))
    monkeypatch.setenv("IMAGES_DIR", str(tmp_path / "images"))
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def session_store():
    return SessionStore(fakeredis.FakeRedis(decode_responses=True), ttl_seconds=3600)


@pytest.fixture()
def app(settings, session_factory, session_store, mailer, gateway):
    application = create_app(
        settings=settings,
        session_store=session_store,
        mailer=mailer,
        payment_gateway=gateway,
    )

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture()
def client(app):
    with TestClient(app, follow_redirects=False) as c:
        yield c


def csrf_token(client) -> str:
    return client.get("/login").headers["X-CSRF-Token"]


def post_form(client, url, data=None, files=None):
    return client.post(url, data={**(data or {}), "_csrf": csrf_token(client)}, files=files)


def login(client, email, password=PASSWORD):
    response = post_form(client, "/login", {"email": email, "password": password})
    assert response.status_code == 303, response.text
    return response


@pytest.fixture()
def user(db):
    return signup(db, "buyer@example.com", PASSWORD)


@pytest.fixture()
def other_user(db):
    return signup(db, "other@example.com", PASSWORD)


@pytest.fixture()
def logged_in(client, user):
    login(client, user.email)
    return client


@pytest.fixture()
def make_product(db, settings):
    def _make(owner, title="Blue Mug", price="9.99", description="A sturdy blue mug"):
        images = Path(settings.images_dir)
        images.mkdir(parents=True, exist_ok=True)
        image = images / f"{uuid.uuid4()}.png"
        image.write_bytes(b"\x89PNG fake")
        product = Product(
            id=uuid.uuid4(),
            title=title,
            price=Decimal(price),
            description=description,
            image_url=image.name,
            user_id=owner.id,
        )
        db.add(product)
        db.commit()
        return product

    return _make
