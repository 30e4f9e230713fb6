from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from hr_app.models.staff import StaffStatus, Gender, StaffType


def _not_in_future(v: Optional[date]) -> Optional[date]:
    if v is not None and v > date.today():
        raise ValueError('Data de nascimento não pode ser futura')
    return v


# ============ ENDERECO ============

class AddressSchema(BaseModel):
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    pincode: Optional[str] = Field(None, max_length=10)
    country: Optional[str] = Field(None, max_length=100)

    class Config:
        str_strip_whitespace = True


# ============ FUNCIONARIO ============

class StaffBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender
    blood_group: Optional[str] = Field(None, max_length=10)
    nationality: Optional[str] = Field(None, max_length=50)
    religion: Optional[str] = Field(None, max_length=50)
    marital_status: Optional[str] = Field(None, max_length=20)

    personal_email: Optional[EmailStr] = None
    work_email: EmailStr
    personal_phone: Optional[str] = Field(None, max_length=20)
    work_phone: str = Field(..., min_length=1, max_length=20)
    emergency_contact_name: Optional[str] = Field(None, max_length=200)
    emergency_contact_phone: Optional[str] = Field(None, max_length=20)
    emergency_contact_relation: Optional[str] = Field(None, max_length=50)

    staff_type: StaffType
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    reporting_manager_id: Optional[int] = None
    join_date: date
    confirmation_date: Optional[date] = None
    probation_end_date: Optional[date] = None

    bio: Optional[str] = None

    class Config:
        str_strip_whitespace = True


class StaffCreate(StaffBase):
    """Schema para cadastrar funcionário (código gerado automaticamente)"""
    current_address: Optional[AddressSchema] = None
    permanent_address: Optional[AddressSchema] = None
    same_as_current: bool = False
    created_by: Optional[int] = None

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        return _not_in_future(v)


class StaffUpdate(BaseModel):
    """
    Schema para atualizar funcionário (parcial)

    version: versão lida pelo chamador. 0 desliga a verificação otimista.
    Status não é alterado por aqui - use o fluxo de status.
    """
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[str] = Field(None, max_length=10)
    nationality: Optional[str] = Field(None, max_length=50)
    religion: Optional[str] = Field(None, max_length=50)
    marital_status: Optional[str] = Field(None, max_length=20)

    personal_email: Optional[EmailStr] = None
    work_email: Optional[EmailStr] = None
    personal_phone: Optional[str] = Field(None, max_length=20)
    work_phone: Optional[str] = Field(None, min_length=1, max_length=20)
    emergency_contact_name: Optional[str] = Field(None, max_length=200)
    emergency_contact_phone: Optional[str] = Field(None, max_length=20)
    emergency_contact_relation: Optional[str] = Field(None, max_length=50)

    current_address: Optional[AddressSchema] = None
    permanent_address: Optional[AddressSchema] = None
    same_as_current: Optional[bool] = None

    staff_type: Optional[StaffType] = None
    department_id: Optional[int] = None
    designation_id: Optional[int] = None
    reporting_manager_id: Optional[int] = None
    confirmation_date: Optional[date] = None
    probation_end_date: Optional[date] = None

    bio: Optional[str] = None

    version: int = Field(default=0, ge=0)
    updated_by: Optional[int] = None

    class Config:
        str_strip_whitespace = True

    @field_validator(
        'first_name', 'last_name', 'date_of_birth', 'gender',
        'work_email', 'work_phone', 'staff_type',
        mode='before'
    )
    @classmethod
    def reject_null(cls, v, info):
        # Campo obrigatório no cadastro: pode ser omitido, mas não apagado
        if v is None:
            raise ValueError(f'{info.field_name} não pode ser vazio')
        return v

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        return _not_in_future(v)


class StaffResponse(StaffBase):
    id: int
    tenant_id: int
    employee_code: str
    employee_code_prefix: str
    full_name: str
    initials: str

    current_address_line1: Optional[str] = None
    current_address_line2: Optional[str] = None
    current_city: Optional[str] = None
    current_state: Optional[str] = None
    current_pincode: Optional[str] = None
    current_country: Optional[str] = None
    permanent_address_line1: Optional[str] = None
    permanent_address_line2: Optional[str] = None
    permanent_city: Optional[str] = None
    permanent_state: Optional[str] = None
    permanent_pincode: Optional[str] = None
    permanent_country: Optional[str] = None
    same_as_current: bool = False

    status: StaffStatus
    status_reason: Optional[str] = None
    termination_date: Optional[date] = None

    version: int
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StaffListResponse(BaseModel):
    items: List[StaffResponse]
    total: int
    page: int
    page_size: int
    pages: int
