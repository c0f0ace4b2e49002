# backend/app/services/admin_metrics_service.py
"""Platform totals for the admin dashboard."""

from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import RoleName
from ..core.exceptions import ForbiddenException
from ..models.booking import Booking
from ..principal import Principal, require_principal
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class TopMentor:
    mentor_id: str
    name: str
    revenue: Decimal
    sessions: int


@dataclass
class AdminMetrics:
    total_mentors: int
    total_students: int
    total_bookings: int
    total_revenue: Decimal
    bookings_by_status: Dict[str, int]
    top_mentors: List[TopMentor] = field(default_factory=list)
    recent_bookings: List[Booking] = field(default_factory=list)


class AdminMetricsService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)

    @BaseService.measure_operation("get_admin_metrics")
    def get_metrics_summary(self, principal: Optional[Principal]) -> AdminMetrics:
        """Totals, status breakdown, top earners and the ten latest bookings."""
        caller = require_principal(principal)
        if not caller.is_admin:
            raise ForbiddenException("Admin access required")

        roles = self.user_repository.count_by_role()
        by_status = self.booking_repository.count_by_status()
        return AdminMetrics(
            total_mentors=roles.get(RoleName.MENTOR.value, 0),
            total_students=roles.get(RoleName.STUDENT.value, 0),
            total_bookings=sum(by_status.values()),
            total_revenue=self.booking_repository.total_paid_revenue(),
            bookings_by_status=by_status,
            top_mentors=[
                TopMentor(mentor_id=mentor_id, name=name, revenue=revenue, sessions=sessions)
                for mentor_id, name, revenue, sessions in self.booking_repository.top_mentors_by_revenue()
            ],
            recent_bookings=self.booking_repository.recent(limit=10),
        )
