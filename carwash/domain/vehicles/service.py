"""Vehicle service - Ownership rules, plate uniqueness and delete guards"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import User, Vehicle
from ...shared.enums import Role
from ...shared.errors import Conflict, Forbidden, NotFound, ValidationFailed
from ..users.repository import UserRepository
from .repository import VehicleRepository
from .schemas import VehicleCreate, VehicleUpdate

logger = logging.getLogger(__name__)


class VehicleService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = VehicleRepository()

    def _ensure_plate_free(self, plate: str, exclude_id: Optional[str] = None) -> None:
        existing = self.repo.get_by_plate(self.db, plate)
        if existing and existing.id != exclude_id:
            raise Conflict(f"Plate {plate} is already registered", code="DUPLICATE_PLATE")

    def list_vehicles(
        self, user: User, owner_id: Optional[str] = None, include_inactive: bool = False
    ) -> list[Vehicle]:
        if user.role_enum == Role.ADMIN:
            return self.repo.list_vehicles(self.db, owner_id, include_inactive)
        return self.repo.list_vehicles(self.db, user.id, include_inactive)

    def get_vehicle(self, vehicle_id: str, user: User) -> Vehicle:
        vehicle = self.repo.get_vehicle(self.db, vehicle_id)
        if not vehicle:
            raise NotFound("Vehicle not found")
        if user.role_enum != Role.ADMIN and vehicle.owner_id != user.id:
            raise Forbidden("You do not own this vehicle")
        return vehicle

    def create_vehicle(self, data: VehicleCreate, user: User) -> Vehicle:
        owner_id = user.id
        if user.role_enum == Role.ADMIN and data.ownerId:
            owner = UserRepository.get_by_id(self.db, data.ownerId)
            if not owner:
                raise NotFound("Owner not found")
            if owner.role_enum != Role.CLIENT:
                raise ValidationFailed("Vehicles can only belong to clients")
            owner_id = owner.id

        self._ensure_plate_free(data.plate)
        vehicle = self.repo.create_vehicle(
            self.db,
            owner_id=owner_id,
            brand=data.brand.strip(),
            model=data.model.strip(),
            plate=data.plate,
            vehicle_type=data.vehicleType.value,
            color=data.color,
            year=data.year,
        )
        logger.info(f"🚗 Vehicle {vehicle.id} ({vehicle.plate}) created for {owner_id}")
        return vehicle

    def update_vehicle(self, vehicle_id: str, data: VehicleUpdate, user: User) -> Vehicle:
        vehicle = self.get_vehicle(vehicle_id, user)
        if data.plate is not None:
            self._ensure_plate_free(data.plate, exclude_id=vehicle.id)

        return self.repo.update_vehicle(
            self.db,
            vehicle,
            brand=data.brand,
            model=data.model,
            plate=data.plate,
            vehicle_type=data.vehicleType.value if data.vehicleType else None,
            color=data.color,
            year=data.year,
            is_active=data.isActive,
        )

    def deactivate_vehicle(self, vehicle_id: str, user: User) -> Vehicle:
        vehicle = self.get_vehicle(vehicle_id, user)
        return self.repo.update_vehicle(self.db, vehicle, is_active=False)

    def delete_vehicle(self, vehicle_id: str, user: User) -> dict:
        """Hard delete, refused while any reservation references the vehicle"""
        vehicle = self.get_vehicle(vehicle_id, user)

        reservation_count = self.repo.count_reservations(self.db, vehicle.id)
        if reservation_count:
            logger.warning(
                f"⚠️ Refusing to delete vehicle {vehicle.id}: {reservation_count} reservation(s)"
            )
            raise Conflict(
                "Vehicle has reservations and cannot be deleted; deactivate it instead",
                code="VEHICLE_IN_USE",
                details={"reservationCount": reservation_count},
            )

        self.repo.delete_vehicle(self.db, vehicle)
        logger.info(f"🗑️ Vehicle {vehicle_id} deleted")
        return {"message": "Vehicle deleted"}
