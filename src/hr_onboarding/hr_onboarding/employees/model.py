from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import format_date, format_datetime
from ..core.enums import EmploymentStatus


@dataclass(frozen=True)
class Employee:
    """Directory record of a person employed by the organisation.

    ``profile_id`` is the identity-provider user id. It stays empty when HR
    creates the record before the person has ever signed in.
    """

    employee_id: int
    employee_code: str
    full_name: str
    email: Optional[str]
    hire_date: Optional[date]
    job_title: Optional[str]
    department: Optional[str]
    manager_id: Optional[int]
    status: EmploymentStatus
    profile_id: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "employee_id": self.employee_id,
            "employee_code": self.employee_code,
            "full_name": self.full_name,
            "email": self.email,
            "hire_date": format_date(self.hire_date),
            "job_title": self.job_title,
            "department": self.department,
            "manager_id": self.manager_id,
            "status": self.status.value,
            "profile_id": self.profile_id,
            "phone": self.phone,
            "address": self.address,
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }


# Columns callers may write; employee_id and timestamps are managed by the store.
WRITABLE_FIELDS = (
    "employee_code",
    "full_name",
    "email",
    "hire_date",
    "job_title",
    "department",
    "manager_id",
    "status",
    "profile_id",
    "phone",
    "address",
)
