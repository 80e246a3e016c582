"""Configuración de pytest y fixtures compartidos"""

import os

# La app crea sus tablas al importarse: usar SQLite en memoria
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.models import Organization, User, UserRole
from app.security import create_user_token


@pytest.fixture
def engine():
    """Base de datos aislada por test (una sola conexión compartida)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """TestClient con get_db apuntando a la base de pruebas"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_org(db):
    def factory(name="Acme", slug=None):
        org = Organization(name=name, slug=slug or name.lower())
        db.add(org)
        db.commit()
        db.refresh(org)
        return org
    return factory


@pytest.fixture
def org(make_org):
    return make_org("Acme")


@pytest.fixture
def make_user(db, org):
    """Crea usuarios con roles; admin recibe la organización del usuario salvo que se indique otra"""
    counter = {"n": 0}

    def factory(name, roles=("employee",), organization=None, admin_of=None, title=None):
        counter["n"] += 1
        organization = organization or org
        user = User(
            organization_id=organization.id,
            name=name,
            email=f"user{counter['n']}@{organization.slug}.com",
            title=title,
            department="Engineering",
        )
        for role in roles:
            if role == "admin":
                for admin_org in admin_of or [organization]:
                    user.roles.append(UserRole(role=role, organization_id=admin_org.id))
            else:
                user.roles.append(UserRole(role=role, organization_id=organization.id))
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return factory


@pytest.fixture
def auth_headers():
    def build(user):
        return {"Authorization": f"Bearer {create_user_token(user)}"}
    return build
