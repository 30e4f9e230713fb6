"""
Models do módulo de RH - Multi-tenant

IMPORTANTE: Todos os models (exceto Tenant) herdam de TenantMixin, que adiciona tenant_id
Isso garante isolamento de dados entre organizações
"""

from hr_app.models.base import Base, TenantMixin, TimestampMixin, AuditMixin
from hr_app.models.tenant import Tenant
from hr_app.models.sequence_counter import SequenceCounter
from hr_app.models.staff import Staff, StaffStatus, Gender, StaffType
from hr_app.models.staff_status_history import StaffStatusHistory

__all__ = [
    "Base",
    "TenantMixin",
    "TimestampMixin",
    "AuditMixin",
    "Tenant",
    "SequenceCounter",
    "Staff",
    "StaffStatus",
    "Gender",
    "StaffType",
    "StaffStatusHistory",
]
