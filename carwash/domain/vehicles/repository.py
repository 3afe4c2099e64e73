"""Vehicle repository - Database operations for vehicles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Reservation, Vehicle


class VehicleRepository:
    @staticmethod
    def get_vehicle(db: Session, vehicle_id: str) -> Optional[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()

    @staticmethod
    def get_by_plate(db: Session, plate: str) -> Optional[Vehicle]:
        return db.query(Vehicle).filter(Vehicle.plate == plate).first()

    @staticmethod
    def list_vehicles(
        db: Session, owner_id: Optional[str] = None, include_inactive: bool = False
    ) -> list[Vehicle]:
        query = db.query(Vehicle)
        if owner_id:
            query = query.filter(Vehicle.owner_id == owner_id)
        if not include_inactive:
            query = query.filter(Vehicle.is_active.is_(True))
        return query.order_by(Vehicle.created_at.desc()).all()

    @staticmethod
    def count_reservations(db: Session, vehicle_id: str) -> int:
        return db.query(Reservation).filter(Reservation.vehicle_id == vehicle_id).count()

    @staticmethod
    def create_vehicle(db: Session, **vehicle_data) -> Vehicle:
        vehicle = Vehicle(**vehicle_data)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def update_vehicle(db: Session, vehicle: Vehicle, **updates) -> Vehicle:
        for key, value in updates.items():
            if value is not None and hasattr(vehicle, key):
                setattr(vehicle, key, value)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    @staticmethod
    def delete_vehicle(db: Session, vehicle: Vehicle) -> None:
        db.delete(vehicle)
        db.commit()
