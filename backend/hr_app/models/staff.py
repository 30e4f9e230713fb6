from sqlalchemy import (
    Column, Integer, String, Text, Date, Boolean, ForeignKey, Index, UniqueConstraint, Enum as SQLEnum
)
from hr_app.models.base import Base, TenantMixin, TimestampMixin, AuditMixin
import enum


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class StaffStatus(str, enum.Enum):
    """
    Status do funcionário

    Qualquer status pode ir para qualquer outro (inclusive ele mesmo).
    TERMINATED não é final: o funcionário pode ser reativado.
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"
    TERMINATED = "terminated"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class StaffType(str, enum.Enum):
    TEACHING = "teaching"
    NON_TEACHING = "non_teaching"


class Staff(Base, TenantMixin, TimestampMixin, AuditMixin):
    """
    Funcionário - unidade de concorrência otimista

    Regras:
    - employee_code (PREFIXO + sequência com zeros à esquerda) é único por tenant
    - version sobe exatamente 1 a cada atualização bem-sucedida
    - status só muda via ledger de status (utils.status.transition)
    """
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)

    # Identificacao
    employee_code = Column(String(50), nullable=False)  # EMP00001
    employee_code_prefix = Column(String(10), nullable=False, default="EMP")

    # Dados pessoais
    first_name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(SQLEnum(Gender, values_callable=_enum_values, name="staff_gender"), nullable=False)
    blood_group = Column(String(10), nullable=True)
    nationality = Column(String(50), nullable=True)
    religion = Column(String(50), nullable=True)
    marital_status = Column(String(20), nullable=True)

    # Contato
    personal_email = Column(String(255), nullable=True)
    work_email = Column(String(255), nullable=False)
    personal_phone = Column(String(20), nullable=True)
    work_phone = Column(String(20), nullable=False)
    emergency_contact_name = Column(String(200), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)
    emergency_contact_relation = Column(String(50), nullable=True)

    # Endereco atual
    current_address_line1 = Column(String(255), nullable=True)
    current_address_line2 = Column(String(255), nullable=True)
    current_city = Column(String(100), nullable=True)
    current_state = Column(String(100), nullable=True)
    current_pincode = Column(String(10), nullable=True)
    current_country = Column(String(100), nullable=True)

    # Endereco permanente
    permanent_address_line1 = Column(String(255), nullable=True)
    permanent_address_line2 = Column(String(255), nullable=True)
    permanent_city = Column(String(100), nullable=True)
    permanent_state = Column(String(100), nullable=True)
    permanent_pincode = Column(String(10), nullable=True)
    permanent_country = Column(String(100), nullable=True)
    same_as_current = Column(Boolean, default=False, nullable=False)

    # Dados do vinculo
    staff_type = Column(SQLEnum(StaffType, values_callable=_enum_values, name="staff_type"), nullable=False)
    department_id = Column(Integer, nullable=True, index=True)
    designation_id = Column(Integer, nullable=True)
    reporting_manager_id = Column(Integer, ForeignKey("staff.id"), nullable=True)
    join_date = Column(Date, nullable=False)
    confirmation_date = Column(Date, nullable=True)
    probation_end_date = Column(Date, nullable=True)

    # Status
    status = Column(
        SQLEnum(StaffStatus, values_callable=_enum_values, name="staff_status"),
        default=StaffStatus.ACTIVE,
        nullable=False
    )
    status_reason = Column(Text, nullable=True)
    termination_date = Column(Date, nullable=True)

    # Perfil
    bio = Column(Text, nullable=True)

    # Lock otimista
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'employee_code', name='uq_staff_tenant_employee_code'),
        Index('idx_staff_tenant_status', 'tenant_id', 'status'),
        Index('idx_staff_tenant_name', 'tenant_id', 'last_name', 'first_name'),
    )

    @property
    def full_name(self) -> str:
        if self.middle_name:
            return f"{self.first_name} {self.middle_name} {self.last_name}"
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        return f"{self.first_name[:1]}{self.last_name[:1]}"

    def __repr__(self):
        return f"<Staff {self.employee_code} v{self.version} ({self.status})>"
