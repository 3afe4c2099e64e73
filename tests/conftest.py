"""Pytest configuration and fixtures."""

import os

# Settings are read at import time, so they must be in place before carwash loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"
os.environ["COMPLETION_POLICY"] = "either"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from carwash.database import Base, get_db, get_session_factory  # noqa: E402
from carwash.main import app  # noqa: E402
from carwash.models import Reservation, User, Vehicle, WashService  # noqa: E402
from carwash.security_utils import create_access_token, hash_password_bcrypt  # noqa: E402
from carwash.services.connection_registry import ConnectionRegistry  # noqa: E402
from carwash.services.payment_gateway import PaymentGatewayError, get_payment_gateway  # noqa: E402
from carwash.shared.enums import ReservationStatus, Role, VehicleType  # noqa: E402

PASSWORD = "wash-and-shine-1"

engine = create_engine(
    "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeGateway:
    """In-memory stand-in for the Stripe Checkout client"""

    def __init__(self):
        self.sessions: dict[str, str] = {}
        self.fail = False
        self.status_calls = 0

    async def create_checkout_session(
        self, reservation_id, amount, description, customer_email=None
    ):
        if self.fail:
            raise PaymentGatewayError("gateway down")
        session_id = f"cs_test_{len(self.sessions) + 1}"
        self.sessions[session_id] = "unpaid"
        return {"id": session_id, "url": f"https://checkout.test/{session_id}"}

    async def get_session_status(self, session_id):
        self.status_calls += 1
        if self.fail:
            raise PaymentGatewayError("gateway down")
        return self.sessions.get(session_id, "unpaid")


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password_bcrypt(PASSWORD)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def client(db, gateway):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.state.connections = ConnectionRegistry()

    yield TestClient(app)

    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


class Factory:
    """Builds committed rows directly through the ORM"""

    def __init__(self, db, password_hash):
        self.db = db
        self.password_hash = password_hash
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, role: Role = Role.CLIENT, **fields) -> User:
        n = self._next()
        defaults = {
            "email": f"{role.value.lower()}{n}@example.com",
            "name": f"{role.value.title()} {n}",
            "password_hash": self.password_hash,
            "role": role.value,
        }
        defaults.update(fields)
        return self._save(User(**defaults))

    def washer(self, **fields) -> User:
        return self.user(Role.WASHER, **fields)

    def vehicle(self, owner: User, **fields) -> Vehicle:
        n = self._next()
        defaults = {
            "owner_id": owner.id,
            "brand": "Nissan",
            "model": "Versa",
            "plate": f"ABC{n:03d}",
            "vehicle_type": VehicleType.SEDAN.value,
        }
        defaults.update(fields)
        return self._save(Vehicle(**defaults))

    def service(self, **fields) -> WashService:
        defaults = {
            "name": "Full wash",
            "price": 300.0,
            "duration": 60,
            "vehicle_type": VehicleType.SEDAN.value,
        }
        defaults.update(fields)
        return self._save(WashService(**defaults))

    def reservation(
        self,
        client: User,
        status: ReservationStatus = ReservationStatus.PENDING,
        washer: User = None,
        **fields,
    ) -> Reservation:
        vehicle = fields.pop("vehicle", None) or self.vehicle(client)
        service = fields.pop("service", None) or self.service()
        defaults = {
            "user_id": client.id,
            "vehicle_id": vehicle.id,
            "service_id": service.id,
            "washer_id": washer.id if washer else None,
            "status": status.value,
            "scheduled_date": date(2025, 6, 1),
            "scheduled_time": "10:00",
            "total_amount": service.price,
        }
        defaults.update(fields)
        return self._save(Reservation(**defaults))


@pytest.fixture
def factory(db, password_hash) -> Factory:
    return Factory(db, password_hash)


@pytest.fixture
def client_user(factory) -> User:
    return factory.user(Role.CLIENT, name="Ana Client")


@pytest.fixture
def washer_user(factory) -> User:
    return factory.washer(name="Wally Washer", latitude=19.4326, longitude=-99.1332)


@pytest.fixture
def admin_user(factory) -> User:
    return factory.user(Role.ADMIN, name="Ada Admin")
