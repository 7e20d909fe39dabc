"""
RequestService tracks requests from data subjects exercising their rights.

The controller has one month to answer, which may be extended once by two
further months (article 12(3) RGPD). Due dates are always computed here.
"""

import calendar
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.config_singleton import get_config
from backend.app.configs.rgpd_config import (
    IDENTITY_SENSITIVE_REQUESTS,
    REQUEST_EXTENSION_MONTHS,
    REQUEST_STATUSES,
    REQUEST_TYPES,
)
from backend.app.database.models import DataSubjectRequest, User, utcnow
from backend.app.services.audit_service import AuditService
from backend.app.utils.logging.logger import log_info
from backend.app.utils.system_utils.exceptions import BusinessRuleError, ResourceNotFoundError

EDITABLE_FIELDS = ("requester_id", "requester_email", "request_type", "status", "description", "identity_verified")


def add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def response_deadline(received_at: datetime, extended: bool = False) -> datetime:
    """Legal answer deadline of a request, counted from its receipt."""
    months = get_config("dsr_response_months", 1)
    if extended:
        months += REQUEST_EXTENSION_MONTHS
    return add_months(received_at, months)


def is_overdue(request: DataSubjectRequest, now: datetime = None) -> bool:
    if request.status == "closed":
        return False
    return request.due_date < (now or utcnow())


def serialize_request(request: DataSubjectRequest) -> Dict[str, Any]:
    data = request.to_dict()
    data["overdue"] = is_overdue(request)
    return data


class RequestService:

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    def list_requests(self, company_id: int) -> List[DataSubjectRequest]:
        return list(self.db.scalars(
            select(DataSubjectRequest)
            .where(DataSubjectRequest.company_id == company_id)
            .order_by(DataSubjectRequest.created_at.desc(), DataSubjectRequest.id.desc())
        ))

    def get_request(self, company_id: int, request_id: int) -> DataSubjectRequest:
        request = self.db.get(DataSubjectRequest, request_id)
        if request is None or request.company_id != company_id:
            raise ResourceNotFoundError("Demande introuvable")
        return request

    @staticmethod
    def _validate(data: Dict[str, Any]) -> None:
        if data.get("request_type") is not None and data["request_type"] not in REQUEST_TYPES:
            raise BusinessRuleError(f"Type de demande invalide: {data['request_type']}")
        if data.get("status") is not None and data["status"] not in REQUEST_STATUSES:
            raise BusinessRuleError(f"Statut invalide: {data['status']}")

    def create_request(self, user: User, company_id: int, data: Dict[str, Any]) -> DataSubjectRequest:
        """
        Register a request. Any due date sent by the client is ignored.

        Raises:
            BusinessRuleError: If the type or status is unknown or the email is missing.
        """
        self._validate(data)
        if not data.get("request_type"):
            raise BusinessRuleError("Le type de demande est obligatoire")
        if not (data.get("requester_email") or "").strip():
            raise BusinessRuleError("L'email du demandeur est obligatoire")
        created_at = utcnow()
        request = DataSubjectRequest(
            company_id=company_id,
            requester_id=data.get("requester_id"),
            requester_email=data["requester_email"].strip(),
            request_type=data["request_type"],
            status=data.get("status") or "new",
            description=data.get("description"),
            identity_verified=bool(data.get("identity_verified")),
            created_at=created_at,
            due_date=response_deadline(created_at),
        )
        self._check_closable(request)
        if request.status == "closed":
            request.completed_at = created_at
        self.db.add(request)
        self.db.flush()
        self.audit.record(user.id, company_id, "create", "data_subject_request", request.id,
                          {"request_type": request.request_type})
        self.db.commit()
        return request

    @staticmethod
    def _check_closable(request: DataSubjectRequest) -> None:
        if (request.status == "closed" and request.request_type in IDENTITY_SENSITIVE_REQUESTS
                and not request.identity_verified):
            raise BusinessRuleError(
                "L'identité du demandeur doit être vérifiée avant de clôturer cette demande"
            )

    def update_request(self, user: User, company_id: int, request_id: int, data: Dict[str, Any]) -> DataSubjectRequest:
        self._validate(data)
        request = self.get_request(company_id, request_id)
        old_status = request.status
        for field in EDITABLE_FIELDS:
            if field in data and data[field] is not None:
                setattr(request, field, data[field])
        self._check_closable(request)
        if request.status == "closed" and old_status != "closed":
            request.completed_at = utcnow()
        elif request.status != "closed":
            request.completed_at = None
        self.audit.record(user.id, company_id, "update", "data_subject_request", request.id,
                          {"status": request.status})
        self.db.commit()
        return request

    def extend_request(self, user: User, company_id: int, request_id: int) -> DataSubjectRequest:
        """
        Extend the answer deadline by two months, once. The new deadline is
        counted from the receipt date so the month-end clamp does not drift.

        Raises:
            BusinessRuleError: If the request was already extended or is closed.
        """
        request = self.get_request(company_id, request_id)
        if request.extended:
            raise BusinessRuleError("Le délai de cette demande a déjà été prolongé")
        if request.status == "closed":
            raise BusinessRuleError("Une demande clôturée ne peut pas être prolongée")
        request.due_date = response_deadline(request.created_at, extended=True)
        request.extended = True
        self.audit.record(user.id, company_id, "extend", "data_subject_request", request.id)
        self.db.commit()
        log_info(f"[REQUESTS] Request {request.id} extended to {request.due_date.date().isoformat()}")
        return request
