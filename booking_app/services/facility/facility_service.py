# ============================================================================
# booking_app/services/facility/facility_service.py
# ============================================================================
"""Read access to facilities, staff and services"""
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from booking_app.models.facility import Facility, Staff
from booking_app.models.service import Service

logger = logging.getLogger(__name__)


class FacilityService:
    """Persistence reads required by the booking core"""

    @staticmethod
    def get_facility(db: Session, facility_id: str) -> Optional[Facility]:
        return db.query(Facility).filter(
            Facility.id == facility_id,
            Facility.is_active.is_(True)
        ).first()

    @staticmethod
    def get_staff(db: Session, staff_id: str) -> Optional[Staff]:
        return db.query(Staff).filter(Staff.id == staff_id).first()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def list_services(db: Session, facility_id: str) -> List[Service]:
        return db.query(Service).filter(
            Service.facility_id == facility_id,
            Service.is_active.is_(True)
        ).order_by(Service.name).all()

    @staticmethod
    def list_active_staff(db: Session, facility_id: str) -> List[Staff]:
        return db.query(Staff).filter(
            Staff.facility_id == facility_id,
            Staff.is_active.is_(True)
        ).order_by(Staff.name).all()

    @staticmethod
    def list_staff_for_service(db: Session, service: Service) -> List[Staff]:
        """Active staff of the service's facility who perform its category"""
        staff = FacilityService.list_active_staff(db, service.facility_id)
        return [member for member in staff if member.performs(service.category)]

    @staticmethod
    def find_service_by_name(db: Session, facility_id: str, name: str) -> Optional[Service]:
        """Case-insensitive exact match first, then substring match"""
        if not name:
            return None
        wanted = name.strip().lower()
        services = FacilityService.list_services(db, facility_id)

        for service in services:
            if service.name.lower() == wanted:
                return service
        for service in services:
            if wanted in service.name.lower() or service.name.lower() in wanted:
                return service

        logger.info(f"No service matching '{name}' in facility {facility_id}")
        return None

    @staticmethod
    def find_staff_by_name(db: Session, facility_id: str, name: str) -> Optional[Staff]:
        """Match a staff preference against full names and first names"""
        if not name:
            return None
        wanted = name.strip().lower()
        for member in FacilityService.list_active_staff(db, facility_id):
            full = member.name.lower()
            if full == wanted or full.split()[0] == wanted or wanted in full:
                return member
        return None
