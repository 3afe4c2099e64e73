import enum

# Stored as VARCHAR columns; the enum classes are the single source of the
# allowed values.


class Role(str, enum.Enum):
    CLIENT = "CLIENT"
    WASHER = "WASHER"
    ADMIN = "ADMIN"


class VehicleType(str, enum.Enum):
    SEDAN = "SEDAN"
    SUV = "SUV"
    HATCHBACK = "HATCHBACK"
    PICKUP = "PICKUP"
    VAN = "VAN"
    MOTORCYCLE = "MOTORCYCLE"


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    OTHER = "OTHER"


class NotificationType(str, enum.Enum):
    INFO = "INFO"
    WASHER_ASSIGNED = "WASHER_ASSIGNED"
    WASHER_ON_WAY = "WASHER_ON_WAY"
    SERVICE_STARTED = "SERVICE_STARTED"
    SERVICE_COMPLETED = "SERVICE_COMPLETED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_REMINDER = "PAYMENT_REMINDER"
    RATING_RECEIVED = "RATING_RECEIVED"
    RESERVATION_CANCELLED = "RESERVATION_CANCELLED"
    PROMOTION = "PROMOTION"


# Allowed reservation status moves; anything absent is rejected
RESERVATION_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.IN_PROGRESS, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.IN_PROGRESS: frozenset({ReservationStatus.COMPLETED}),
    ReservationStatus.COMPLETED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
}


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in RESERVATION_TRANSITIONS[ReservationStatus(current)]
