import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models_sqlalchemy as models
from api_endpoints import app
from database import get_db, make_engine

# ---------- TEST FIXTURES ----------

# One in-memory SQLite database per test, shared by every connection
TEST_DATABASE_URL = "sqlite://"

DESCRIPTION = "A quiet riverside campsite with shaded pitches, clean showers and mountain views."


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("SITE_URL", "https://campingthailand.com")
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.delenv("MAIL_API_URL", raising=False)
    monkeypatch.delenv("ANALYTICS_ENDPOINT", raising=False)
    monkeypatch.delenv("MEDIA_BASE_URL", raising=False)


@pytest.fixture
def engine():
    engine = make_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    models.Base.metadata.create_all(bind=engine)
    yield engine
    models.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """A new DB session for each test."""
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def client(db_session):
    """Override get_db dependency for FastAPI TestClient."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# ---------- TEST DATA ----------

def _profile(db, name, email, role, token):
    profile = models.Profile(full_name=name, email=email, user_role=role, access_token=token)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def admin(db_session):
    return _profile(db_session, "Admin Somchai", "admin@example.com", models.UserRole.admin, "admin-token")


@pytest.fixture
def owner(db_session):
    return _profile(db_session, "Owner Malee", "owner@example.com", models.UserRole.owner, "owner-token")


@pytest.fixture
def other_owner(db_session):
    return _profile(db_session, "Owner Niran", "niran@example.com", models.UserRole.owner, "other-owner-token")


@pytest.fixture
def camper(db_session):
    return _profile(db_session, "Camper Ploy", "ploy@example.com", models.UserRole.user, "camper-token")


@pytest.fixture
def second_camper(db_session):
    return _profile(db_session, "Camper Arthit", "arthit@example.com", models.UserRole.user, "second-camper-token")


@pytest.fixture
def province(db_session):
    province = models.Province(slug="chiang-mai", name_th="เชียงใหม่", name_en="Chiang Mai", region="north")
    db_session.add(province)
    db_session.commit()
    db_session.refresh(province)
    return province


@pytest.fixture
def make_campsite(db_session, owner, province):
    def _make(name="Doi Inthanon Camp", status=models.ApprovalStatus.approved, owner_profile=None, **kwargs):
        campsite = models.Campsite(
            owner_id=(owner_profile or owner).id,
            province_id=province.id,
            name=name,
            description=DESCRIPTION,
            campsite_type=kwargs.pop("campsite_type", models.CampsiteType.camping),
            address="123 Moo 4, Ban Luang, Chom Thong",
            latitude=18.5886,
            longitude=98.4868,
            min_price=kwargs.pop("min_price", 300),
            max_price=kwargs.pop("max_price", 1200),
            status=status,
            **kwargs,
        )
        db_session.add(campsite)
        db_session.commit()
        db_session.refresh(campsite)
        return campsite

    return _make


@pytest.fixture
def make_review(db_session):
    def _make(campsite, user, **kwargs):
        review = models.Review(
            campsite_id=campsite.id,
            user_id=user.id,
            rating_overall=kwargs.pop("rating_overall", 4),
            content=kwargs.pop("content", "Lovely spot, friendly staff and a great view of the valley."),
            **kwargs,
        )
        db_session.add(review)
        db_session.commit()
        db_session.refresh(review)
        return review

    return _make
