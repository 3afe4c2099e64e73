"""Catalog repository"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Reservation, WashService


class CatalogRepository:
    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[WashService]:
        return db.query(WashService).filter(WashService.id == service_id).first()

    @staticmethod
    def list_services(
        db: Session, vehicle_type: Optional[str] = None, include_inactive: bool = False
    ) -> list[WashService]:
        query = db.query(WashService)
        if not include_inactive:
            query = query.filter(WashService.is_active.is_(True))
        if vehicle_type:
            query = query.filter(WashService.vehicle_type == vehicle_type)
        return query.order_by(WashService.vehicle_type, WashService.price).all()

    @staticmethod
    def count_reservations(db: Session, service_id: str) -> int:
        return db.query(Reservation).filter(Reservation.service_id == service_id).count()

    @staticmethod
    def create_service(db: Session, **service_data) -> WashService:
        service = WashService(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: WashService, **updates) -> WashService:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def delete_service(db: Session, service: WashService) -> None:
        db.delete(service)
        db.commit()
