"""Catalog service - wash service CRUD"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import WashService
from ...shared.enums import VehicleType
from ...shared.errors import Conflict, NotFound
from .repository import CatalogRepository
from .schemas import WashServiceCreate, WashServiceUpdate

logger = logging.getLogger(__name__)


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    def list_services(
        self, vehicle_type: Optional[VehicleType] = None, include_inactive: bool = False
    ) -> list[WashService]:
        return self.repo.list_services(
            self.db, vehicle_type.value if vehicle_type else None, include_inactive
        )

    def get_service(self, service_id: str) -> WashService:
        service = self.repo.get_service(self.db, service_id)
        if not service:
            raise NotFound("Service not found")
        return service

    def create_service(self, data: WashServiceCreate) -> WashService:
        service = self.repo.create_service(
            self.db,
            name=data.name.strip(),
            description=data.description,
            price=data.price,
            duration=data.duration,
            vehicle_type=data.vehicleType.value,
            is_active=data.isActive,
        )
        logger.info(f"✅ Service {service.id} created: {service.name} ({service.price})")
        return service

    def update_service(self, service_id: str, data: WashServiceUpdate) -> WashService:
        # Reservations keep their own total_amount snapshot, so price edits are safe
        service = self.get_service(service_id)
        return self.repo.update_service(
            self.db,
            service,
            name=data.name,
            description=data.description,
            price=data.price,
            duration=data.duration,
            vehicle_type=data.vehicleType.value if data.vehicleType else None,
            is_active=data.isActive,
        )

    def delete_service(self, service_id: str) -> dict:
        service = self.get_service(service_id)

        reservation_count = self.repo.count_reservations(self.db, service.id)
        if reservation_count:
            raise Conflict(
                "Service has reservations and cannot be deleted; deactivate it instead",
                code="SERVICE_IN_USE",
                details={"reservationCount": reservation_count},
            )

        self.repo.delete_service(self.db, service)
        logger.info(f"🗑️ Service {service_id} deleted")
        return {"message": "Service deleted"}
