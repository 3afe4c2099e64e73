from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .shared.enums import NotificationType, PaymentStatus, ReservationStatus, Role
from .shared.validators import new_id


def utcnow() -> datetime:
    """Naive UTC timestamp with microsecond resolution"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def id_column(kind: str):
    return Column(String(40), primary_key=True, index=True, default=lambda: new_id(kind))


class User(Base):
    __tablename__ = "users"

    id = id_column("user")
    role = Column(String(20), nullable=False, default=Role.CLIENT.value, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)

    # Washer-only fields
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    rating = Column(Float, default=0.0, nullable=False)  # Mean of received stars, unrounded
    completed_services = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    vehicles = relationship("Vehicle", back_populates="owner")
    reservations = relationship(
        "Reservation", back_populates="client", foreign_keys="Reservation.user_id"
    )
    assigned_jobs = relationship(
        "Reservation", back_populates="washer", foreign_keys="Reservation.washer_id"
    )
    received_ratings = relationship(
        "Rating", back_populates="washer", foreign_keys="Rating.washer_id"
    )

    @property
    def role_enum(self) -> Role:
        return Role(self.role)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = id_column("vehicle")
    owner_id = Column(String(40), ForeignKey("users.id"), nullable=False, index=True)
    brand = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    plate = Column(String(20), unique=True, index=True, nullable=False)  # Upper-cased, no spaces
    vehicle_type = Column(String(20), nullable=False)
    color = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    owner = relationship("User", back_populates="vehicles")
    reservations = relationship("Reservation", back_populates="vehicle")


class WashService(Base):
    """Catalog entry a client can book"""

    __tablename__ = "wash_services"

    id = id_column("service")
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Float, nullable=False)
    duration = Column(Integer, nullable=False)  # Minutes
    vehicle_type = Column(String(20), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    reservations = relationship("Reservation", back_populates="service")


class Reservation(Base):
    __tablename__ = "reservations"

    id = id_column("reservation")
    user_id = Column(String(40), ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(String(40), ForeignKey("vehicles.id"), nullable=False, index=True)
    service_id = Column(String(40), ForeignKey("wash_services.id"), nullable=False, index=True)
    washer_id = Column(String(40), ForeignKey("users.id"), nullable=True, index=True)

    # Lifecycle: PENDING → CONFIRMED → IN_PROGRESS → COMPLETED, CANCELLED from PENDING/CONFIRMED
    status = Column(
        String(20), default=ReservationStatus.PENDING.value, nullable=False, index=True
    )

    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(String(5), nullable=False)  # HH:MM
    total_amount = Column(Float, nullable=False)  # Snapshot of service price at booking time

    address = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    estimated_arrival = Column(DateTime, nullable=True)

    started_at = Column(DateTime, nullable=True)
    serviced_at = Column(DateTime, nullable=True)  # Washer finished the job
    paid_at = Column(DateTime, nullable=True)  # Completed payments cover total_amount
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    client = relationship("User", back_populates="reservations", foreign_keys=[user_id])
    washer = relationship("User", back_populates="assigned_jobs", foreign_keys=[washer_id])
    vehicle = relationship("Vehicle", back_populates="reservations")
    service = relationship("WashService", back_populates="reservations")
    payments = relationship("Payment", back_populates="reservation", cascade="all, delete-orphan")
    rating = relationship(
        "Rating", back_populates="reservation", uselist=False, cascade="all, delete-orphan"
    )
    proof = relationship(
        "ServiceProof", back_populates="reservation", uselist=False, cascade="all, delete-orphan"
    )


class Payment(Base):
    __tablename__ = "payments"

    id = id_column("payment")
    reservation_id = Column(String(40), ForeignKey("reservations.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)
    status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)
    transaction_id = Column(String(255), nullable=True, index=True)  # Gateway session id
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    reservation = relationship("Reservation", back_populates="payments")


class Rating(Base):
    __tablename__ = "ratings"

    id = id_column("rating")
    reservation_id = Column(
        String(40), ForeignKey("reservations.id"), unique=True, nullable=False, index=True
    )
    user_id = Column(String(40), ForeignKey("users.id"), nullable=False)
    washer_id = Column(String(40), ForeignKey("users.id"), nullable=False, index=True)
    stars = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())

    reservation = relationship("Reservation", back_populates="rating")
    client = relationship("User", foreign_keys=[user_id])
    washer = relationship("User", back_populates="received_ratings", foreign_keys=[washer_id])


class Notification(Base):
    """Append-only user-facing message; only is_read ever changes"""

    __tablename__ = "notifications"

    id = id_column("notification")
    user_id = Column(String(40), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(40), default=NotificationType.INFO.value, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    action_url = Column(String(500), nullable=True)
    extra = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())


class ServiceProof(Base):
    __tablename__ = "service_proofs"

    id = id_column("proof")
    reservation_id = Column(
        String(40), ForeignKey("reservations.id"), unique=True, nullable=False, index=True
    )
    before_photos = Column(JSON, default=list, nullable=False)
    after_photos = Column(JSON, default=list, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, server_default=func.now(), onupdate=utcnow)

    reservation = relationship("Reservation", back_populates="proof")


class Message(Base):
    """Direct chat message between two users"""

    __tablename__ = "messages"

    id = id_column("message")
    sender_id = Column(String(40), ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = Column(String(40), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, server_default=func.now(), index=True)

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
