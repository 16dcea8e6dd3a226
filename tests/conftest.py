"""
Test Configuration and Fixtures
Shared testing infrastructure for the fish stocking registry
"""
import os
import tempfile

# The application engine and log handlers are created on import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="fishstocking-logs-"))

import pytest
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from fishstocking.main import app
from fishstocking.api import deps
from fishstocking.core.database import get_db, Base
from fishstocking.core.security import Actor, ActorType, create_access_token
from fishstocking.models import (
    FishAge, FishBatch, FishStocking, FishType, NotificationSubscription,
    Tenant, TenantUser, TenantUserRole, User, UserType,
)
from fishstocking.schemas.stocking import FishStockingRegister
from fishstocking.services.notifications import NotificationDispatcher

# In-memory SQLite shared by every session of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _connect(dbapi_connection, connection_record):
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs work on pysqlite
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

MUNICIPALITY = {"id": 13, "name": "Vilniaus m. sav."}
OTHER_MUNICIPALITY = {"id": 41, "name": "Kauno m. sav."}

GEOM = {
    "type": "FeatureCollection",
    "features": [
        {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [25.2797, 54.6872]},
            "properties": {},
        }
    ],
}


class FrozenClock:
    """Callable clock that tests move by hand"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime):
        self.now = now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher that keeps what it was asked to deliver"""

    def __init__(self):
        super().__init__(smtp_host="", enabled=True)
        self.dispatched = []

    def dispatch(self, pending):
        pending = list(pending)
        self.dispatched.extend(pending)
        return len(pending)


@dataclass
class Registry:
    """Seeded parties and reference rows"""
    tenant: Tenant
    customer_tenant: Tenant
    other_tenant: Tenant
    owner: User
    member: User
    customer_member: User
    outsider: User
    freelancer: User
    other_freelancer: User
    inspector: User
    other_inspector: User
    pike: FishType
    carp: FishType
    fry: FishAge
    yearling: FishAge

    @property
    def tenant_actor(self) -> Actor:
        return Actor(user_id=self.owner.id, type=ActorType.USER, profile=self.tenant.id)

    @property
    def customer_actor(self) -> Actor:
        return Actor(user_id=self.customer_member.id, type=ActorType.USER, profile=self.customer_tenant.id)

    @property
    def outsider_actor(self) -> Actor:
        return Actor(user_id=self.outsider.id, type=ActorType.USER, profile=self.other_tenant.id)

    @property
    def freelancer_actor(self) -> Actor:
        return Actor(user_id=self.freelancer.id, type=ActorType.USER)

    @property
    def other_freelancer_actor(self) -> Actor:
        return Actor(user_id=self.other_freelancer.id, type=ActorType.USER)

    @property
    def admin_actor(self) -> Actor:
        return Actor(user_id=900, type=ActorType.ADMIN, municipalities=(MUNICIPALITY["id"],))

    @property
    def foreign_admin_actor(self) -> Actor:
        return Actor(user_id=901, type=ActorType.ADMIN, municipalities=(OTHER_MUNICIPALITY["id"],))

    @property
    def super_admin_actor(self) -> Actor:
        return Actor(user_id=902, type=ActorType.SUPER_ADMIN)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock() -> FrozenClock:
    """Clock frozen at noon, 1 March 2024"""
    return FrozenClock(datetime(2024, 3, 1, 12, 0))


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture(scope="function")
def client(
    db_session: Session, clock: FrozenClock, dispatcher: RecordingDispatcher
) -> Generator[TestClient, None, None]:
    """Create a test client with database, clock and mail overrides"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_clock] = lambda: clock
    app.dependency_overrides[deps.get_notification_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def registry(db_session: Session) -> Registry:
    """Tenants, users, memberships, fish reference data and a subscriber"""
    tenant = Tenant(code="ZUV", name="Zuvininkai UAB", email="info@zuv.lt")
    customer_tenant = Tenant(code="EZR", name="Ezeru bendrija", email="info@ezr.lt")
    other_tenant = Tenant(code="KIT", name="Kita imone", email="info@kit.lt")

    owner = User(first_name="Jonas", last_name="Jonaitis", email="jonas@zuv.lt")
    member = User(first_name="Ona", last_name="Onaite", email="ona@zuv.lt")
    customer_member = User(first_name="Petras", last_name="Petraitis", email="petras@ezr.lt")
    outsider = User(first_name="Rasa", last_name="Rasaite", email="rasa@kit.lt")
    freelancer = User(first_name="Tomas", last_name="Tomaitis", email="tomas@mail.lt", is_freelancer=True)
    other_freelancer = User(first_name="Lina", last_name="Linaite", email="lina@mail.lt", is_freelancer=True)
    inspector = User(
        first_name="Algis", last_name="Algaitis", email="algis@aad.lt",
        phone="+37060000001", type=UserType.INSPECTOR.value,
    )
    other_inspector = User(
        first_name="Dalia", last_name="Daliene", email="dalia@aad.lt",
        phone="+37060000002", type=UserType.INSPECTOR.value,
    )

    pike = FishType(label="Lydeka", priority=10)
    carp = FishType(label="Karpis", priority=5)
    fry = FishAge(label="Jaunikliai", priority=10)
    yearling = FishAge(label="Metinukai", priority=5)

    db_session.add_all([
        tenant, customer_tenant, other_tenant,
        owner, member, customer_member, outsider, freelancer, other_freelancer,
        inspector, other_inspector, pike, carp, fry, yearling,
        NotificationSubscription(email="vilnius@aad.lt", municipality_id=MUNICIPALITY["id"]),
        NotificationSubscription(email="kaunas@aad.lt", municipality_id=OTHER_MUNICIPALITY["id"]),
        NotificationSubscription(email="all@aad.lt", municipality_id=None),
    ])
    db_session.flush()

    db_session.add_all([
        TenantUser(tenant_id=tenant.id, user_id=owner.id, role=TenantUserRole.OWNER.value),
        TenantUser(tenant_id=tenant.id, user_id=member.id, role=TenantUserRole.USER.value),
        TenantUser(tenant_id=customer_tenant.id, user_id=customer_member.id, role=TenantUserRole.OWNER.value),
        TenantUser(tenant_id=other_tenant.id, user_id=outsider.id, role=TenantUserRole.OWNER.value),
    ])
    db_session.commit()

    return Registry(
        tenant=tenant, customer_tenant=customer_tenant, other_tenant=other_tenant,
        owner=owner, member=member, customer_member=customer_member, outsider=outsider,
        freelancer=freelancer, other_freelancer=other_freelancer,
        inspector=inspector, other_inspector=other_inspector,
        pike=pike, carp=carp, fry=fry, yearling=yearling,
    )


def location_data(municipality: Optional[Dict[str, Any]] = None, **overrides) -> Dict[str, Any]:
    data = {
        "cadastral_id": "10010001",
        "name": "Baltieji Lakajai",
        "municipality": municipality or MUNICIPALITY,
        "area": 12.5,
        "length": None,
        "category": "ezeras",
    }
    data.update(overrides)
    return data


def registration_data(registry: Registry, event_time: datetime, **overrides) -> Dict[str, Any]:
    """Valid registration body for the owner of the seeded tenant"""
    data = {
        "event_time": event_time.isoformat(),
        "phone": "+37061234567",
        "assigned_to": registry.member.id,
        "location": location_data(),
        "geom": GEOM,
        "batches": [
            {"fish_type": registry.pike.id, "fish_age": registry.fry.id, "amount": 1000, "weight": 12.5},
            {"fish_type": registry.carp.id, "fish_age": registry.yearling.id, "amount": 500},
            {"fish_type": registry.pike.id, "fish_age": registry.yearling.id, "amount": 250, "weight": 30},
        ],
        "fish_origin": "GROWN",
        "fish_origin_company_name": "Zuvu ukis UAB",
    }
    data.update(overrides)
    return data


def registration_payload(registry: Registry, event_time: datetime, **overrides) -> FishStockingRegister:
    return FishStockingRegister(**registration_data(registry, event_time, **overrides))


def create_stocking(
    db_session: Session,
    event_time: datetime,
    batches: List[Dict[str, Any]],
    **fields,
) -> FishStocking:
    """Insert an event and its batches directly, bypassing the lifecycle checks"""
    values = {
        "fish_origin": "GROWN",
        "fish_origin_company_name": "Zuvu ukis UAB",
        "location": location_data(),
        "municipality_id": MUNICIPALITY["id"],
        "geom": GEOM["features"][0]["geometry"],
    }
    values.update(fields)
    stocking = FishStocking(event_time=event_time, **values)
    db_session.add(stocking)
    db_session.flush()
    for batch in batches:
        db_session.add(FishBatch(fish_stocking_id=stocking.id, **batch))
    db_session.commit()
    return stocking


def auth_headers(actor: Actor) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor)}"}
