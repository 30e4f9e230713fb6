"""
Servico de cadastro de funcionarios
Cadastro com codigo sequencial, edicao com lock otimista e alteracao de status com historico
"""
import logging
import threading
from datetime import date, datetime
from typing import Optional, Tuple, List, Union, Callable, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from hr_app.config import settings
from hr_app.core.errors import ValidationError
from hr_app.core.tenant_context import require_tenant_id
from hr_app.database import SessionLocal, SQLITE_BEGIN_OPTION
from hr_app.models.staff import Staff, StaffStatus, StaffType
from hr_app.models.staff_status_history import StaffStatusHistory
from hr_app.schemas.staff import (
    AddressSchema, StaffCreate, StaffUpdate, StaffResponse, StaffListResponse
)
from hr_app.utils import (
    get_by_id, get_by_field, validate_fk,
    paginate_response, apply_filters,
    allocate, peek_next, format_code,
    conditional_update, update_values,
    transition,
    run_atomic, translate_storage_error,
    parse_input,
)
from hr_app.utils.status import check_transition_input, parse_status

logger = logging.getLogger(__name__)

R = TypeVar('R')

ADDRESS_FIELDS = ("address_line1", "address_line2", "city", "state", "pincode", "country")
MAX_PAGE_SIZE = 100


def _address_values(kind: str, address: AddressSchema, default_country: str = None, keep_blank_country: bool = False) -> dict:
    """
    Converte AddressSchema nas colunas planas current_* / permanent_*

    keep_blank_country=False: país vazio assume default_country (cadastro)
    keep_blank_country=True: país vazio não altera o valor gravado (edição)
    """
    values = {f"{kind}_{field}": getattr(address, field) for field in ADDRESS_FIELDS}
    if not address.country:
        if keep_blank_country:
            values.pop(f"{kind}_country")
        else:
            values[f"{kind}_country"] = default_country
    return values


class StaffService:
    """
    Servico de funcionarios

    Cada operacao abre a propria sessao (uma transacao por requisicao).
    Erros saem como excecoes de hr_app.core.errors, sem retry automatico.
    """

    def __init__(self, session_factory: sessionmaker = None):
        self.session_factory = session_factory or SessionLocal

    # ============ LEITURA ============

    def _read(self, fn: Callable[[Session], R]) -> R:
        try:
            with self.session_factory() as db:
                # Somente leitura: no SQLite não disputa o lock de escrita
                db.connection(execution_options={SQLITE_BEGIN_OPTION: "DEFERRED"})
                return fn(db)
        except SQLAlchemyError as e:
            raise translate_storage_error(e) from e

    def get_staff(self, tenant_id: Optional[int], staff_id: int) -> Staff:
        """Obter funcionario por ID"""
        tenant_id = require_tenant_id(tenant_id)
        return self._read(
            lambda db: get_by_id(db, Staff, staff_id, tenant_id, error_message="Funcionário não encontrado")
        )

    def get_by_employee_code(self, tenant_id: Optional[int], employee_code: str) -> Staff:
        """Obter funcionario pelo codigo (ex: EMP00001)"""
        tenant_id = require_tenant_id(tenant_id)
        return self._read(
            lambda db: get_by_field(
                db, Staff, "employee_code", employee_code.strip().upper(), tenant_id,
                error_message="Funcionário não encontrado"
            )
        )

    def list_staff(
        self,
        tenant_id: Optional[int],
        status: Union[str, StaffStatus, None] = None,
        staff_type: Union[str, StaffType, None] = None,
        department_id: Optional[int] = None,
        page: int = 1,
        page_size: int = 20
    ) -> StaffListResponse:
        """Listar funcionarios do tenant, ordenados por sobrenome e nome"""
        tenant_id = require_tenant_id(tenant_id)
        if page < 1:
            raise ValidationError("page deve ser >= 1")
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValidationError(f"page_size deve estar entre 1 e {MAX_PAGE_SIZE}")

        status = parse_status(status) if status is not None else None
        if staff_type is not None:
            try:
                staff_type = StaffType(staff_type)
            except ValueError:
                raise ValidationError(f"Tipo de funcionário inválido: {staff_type}")

        def listar(db: Session) -> StaffListResponse:
            query = db.query(Staff).filter(Staff.tenant_id == tenant_id)
            query = apply_filters(query, [
                (Staff.status, "eq", status),
                (Staff.staff_type, "eq", staff_type),
                (Staff.department_id, "eq", department_id),
            ])
            response = paginate_response(
                query, page, page_size,
                order_by=(Staff.last_name, Staff.first_name, Staff.id),
                transform_fn=StaffResponse.model_validate
            )
            return StaffListResponse(**response)

        return self._read(listar)

    def count_staff(self, tenant_id: Optional[int]) -> int:
        """Total de funcionarios do tenant"""
        tenant_id = require_tenant_id(tenant_id)
        return self._read(
            lambda db: db.query(Staff).filter(Staff.tenant_id == tenant_id).count()
        )

    def get_status_history(self, tenant_id: Optional[int], staff_id: int) -> List[StaffStatusHistory]:
        """Historico de status do funcionario, mais recente primeiro"""
        tenant_id = require_tenant_id(tenant_id)

        def historico(db: Session) -> List[StaffStatusHistory]:
            get_by_id(db, Staff, staff_id, tenant_id, error_message="Funcionário não encontrado")
            return db.query(StaffStatusHistory).filter(
                StaffStatusHistory.tenant_id == tenant_id,
                StaffStatusHistory.staff_id == staff_id
            ).order_by(
                StaffStatusHistory.changed_at.desc(),
                StaffStatusHistory.id.desc()
            ).all()

        return self._read(historico)

    def preview_next_code(self, tenant_id: Optional[int], prefix: str = None) -> str:
        """
        Codigo que SERIA gerado no proximo cadastro.

        Apenas informativo: nao reserva o numero, e dois cadastros
        simultaneos podem invalidar a previa.
        """
        tenant_id = require_tenant_id(tenant_id)
        prefix = self._resolve_prefix(prefix)
        proximo = self._read(lambda db: peek_next(db, tenant_id, prefix))
        return format_code(prefix, proximo, settings.EMPLOYEE_CODE_DIGITS)

    # ============ ESCRITA ============

    def create(
        self,
        tenant_id: Optional[int],
        data: Union[StaffCreate, dict],
        prefix: str = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Staff:
        """
        Cadastrar funcionario com codigo gerado automaticamente

        Reserva do numero e INSERT na mesma transacao: se o INSERT falhar,
        o contador volta ao valor anterior.
        """
        tenant_id = require_tenant_id(tenant_id)
        dados = parse_input(StaffCreate, data)
        prefix = self._resolve_prefix(prefix)

        fields = dados.model_dump(
            exclude={"current_address", "permanent_address", "same_as_current", "created_by"}
        )
        if not fields.get("nationality"):
            fields["nationality"] = settings.DEFAULT_NATIONALITY

        address = {}
        if dados.current_address is not None:
            address.update(_address_values("current", dados.current_address, settings.DEFAULT_COUNTRY))

        if dados.same_as_current and dados.current_address is not None:
            address["same_as_current"] = True
            address.update(_address_values("permanent", dados.current_address, settings.DEFAULT_COUNTRY))
        elif dados.permanent_address is not None:
            address.update(_address_values("permanent", dados.permanent_address, settings.DEFAULT_COUNTRY))

        def criar(db: Session) -> Staff:
            if dados.reporting_manager_id is not None:
                validate_fk(db, Staff, dados.reporting_manager_id, tenant_id, "Gestor")

            sequence = allocate(db, tenant_id, prefix)
            staff = Staff(
                tenant_id=tenant_id,
                employee_code=format_code(prefix, sequence, settings.EMPLOYEE_CODE_DIGITS),
                employee_code_prefix=prefix,
                status=StaffStatus.ACTIVE,
                version=1,
                created_by=dados.created_by,
                updated_by=dados.created_by,
                **fields,
                **address
            )
            db.add(staff)
            db.flush()
            return staff

        with self.session_factory() as db:
            staff = run_atomic(db, criar, cancel_event)

        logger.info("[STAFF] Funcionário %s cadastrado (tenant %s)", staff.employee_code, tenant_id)
        return staff

    def update(
        self,
        tenant_id: Optional[int],
        staff_id: int,
        data: Union[StaffUpdate, dict],
        expected_version: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Staff:
        """
        Atualizar funcionario (parcial) com lock otimista

        expected_version: versao lida pelo chamador; se omitida usa data.version.
        0 desliga a verificacao. Em conflito o chamador deve reler e reenviar.
        """
        tenant_id = require_tenant_id(tenant_id)
        dados = parse_input(StaffUpdate, data)
        version = dados.version if expected_version is None else expected_version
        if version < 0:
            raise ValidationError("expected_version deve ser >= 0")

        values = self._update_values(dados)

        def atualizar(db: Session) -> Staff:
            manager_id = values.get("reporting_manager_id")
            if manager_id is not None:
                validate_fk(db, Staff, manager_id, tenant_id, "Gestor")
            return conditional_update(db, Staff, staff_id, tenant_id, values, version)

        with self.session_factory() as db:
            staff = run_atomic(db, atualizar, cancel_event)

        logger.info("[STAFF] Funcionário %s atualizado para versão %s", staff.employee_code, staff.version)
        return staff

    def update_status(
        self,
        tenant_id: Optional[int],
        staff_id: int,
        new_status: Union[str, StaffStatus],
        reason: Optional[str],
        effective_date: Union[date, datetime, str, None],
        actor: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> Tuple[Staff, StaffStatusHistory]:
        """
        Alterar status do funcionario gravando historico na mesma transacao

        Nao ha restricao de transicao: qualquer status vai para qualquer outro.

        Returns:
            Tupla (funcionario_atualizado, entrada_de_historico)
        """
        tenant_id = require_tenant_id(tenant_id)
        status, reason, effective = check_transition_input(new_status, reason, effective_date)

        with self.session_factory() as db:
            staff, entry = run_atomic(
                db,
                lambda tx: transition(tx, tenant_id, staff_id, status, reason, effective, actor),
                cancel_event
            )

        return staff, entry

    # ============ AUXILIARES ============

    @staticmethod
    def _resolve_prefix(prefix: Optional[str]) -> str:
        prefix = (prefix or settings.EMPLOYEE_CODE_PREFIX).strip().upper()
        if not prefix or len(prefix) > 10:
            raise ValidationError("Prefixo deve ter entre 1 e 10 caracteres")
        return prefix

    @staticmethod
    def _update_values(dados: StaffUpdate) -> dict:
        """Colunas a gravar a partir dos campos enviados na edicao"""
        values = update_values(
            dados,
            exclude_fields=["version", "updated_by", "current_address", "permanent_address", "same_as_current"]
        )

        if dados.current_address is not None:
            values.update(_address_values("current", dados.current_address, keep_blank_country=True))

        if dados.same_as_current and dados.current_address is not None:
            values["same_as_current"] = True
            values.update(_address_values("permanent", dados.current_address, keep_blank_country=True))
        elif dados.permanent_address is not None:
            values["same_as_current"] = False
            values.update(_address_values("permanent", dados.permanent_address, keep_blank_country=True))

        values["updated_by"] = dados.updated_by
        return values
