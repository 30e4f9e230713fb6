"""
Status Helpers - Validação e transição de status com histórico (ledger)
"""
import logging
from datetime import date, datetime
from enum import Enum
from typing import TypeVar, Optional, Tuple, Union
from sqlalchemy.orm import Session

from hr_app.core.errors import (
    InvalidStatus, ReasonRequired, EffectiveDateRequired, ValidationError
)
from hr_app.models.staff import Staff, StaffStatus
from hr_app.models.staff_status_history import StaffStatusHistory
from hr_app.utils.db_helpers import get_by_id

logger = logging.getLogger(__name__)

T = TypeVar('T')

# None = qualquer status pode ir para qualquer outro, inclusive ele mesmo
STAFF_STATUS_TRANSITIONS = None


def parse_status(value: Union[str, StaffStatus, None]) -> StaffStatus:
    """
    Converte o valor recebido em StaffStatus.

    Aceita o valor ("on_leave"), o nome ("ON_LEAVE") ou CamelCase ("OnLeave").

    Raises:
        InvalidStatus se o valor não for reconhecido
    """
    if isinstance(value, StaffStatus):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidStatus()

    key = value.strip().replace("_", "").replace(" ", "").lower()
    for status in StaffStatus:
        if status.value.replace("_", "") == key:
            return status

    raise InvalidStatus(f"Status inválido: {value}")


def parse_effective_date(value: Union[date, datetime, str, None]) -> date:
    """
    Raises:
        EffectiveDateRequired se não informada
        ValidationError se não for uma data ISO válida
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise EffectiveDateRequired()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"Data de vigência inválida: {value}")


def check_transition_input(
    new_status: Union[str, StaffStatus, None],
    reason: Optional[str],
    effective_date: Union[date, datetime, str, None]
) -> Tuple[StaffStatus, str, date]:
    """
    Valida os dados de uma alteração de status, nesta ordem:
    status reconhecido, motivo preenchido, data de vigência informada.

    Returns:
        Tupla (status, motivo_sem_espacos, data_de_vigencia)
    """
    status = parse_status(new_status)
    if not isinstance(reason, str) or not reason.strip():
        raise ReasonRequired()
    return status, reason.strip(), parse_effective_date(effective_date)


def transition_status(
    entity: T,
    new_status: Enum,
    allowed_transitions: dict = None
) -> T:
    """
    Transiciona status com validação de transições permitidas.

    Args:
        entity: Entidade com campo 'status'
        new_status: Novo status
        allowed_transitions: Dict de {status_atual: [status_permitidos]}
                             None = sem restrição

    Returns:
        Entidade com status atualizado

    Raises:
        ValidationError se transição não for permitida
    """
    if allowed_transitions:
        current = entity.status
        allowed = allowed_transitions.get(current, [])

        if new_status not in allowed:
            raise ValidationError(
                f"Transição de {current.value} para {new_status.value} não permitida"
            )

    entity.status = new_status
    return entity


def transition(
    db: Session,
    tenant_id: int,
    staff_id: int,
    new_status: Union[str, StaffStatus],
    reason: Optional[str],
    effective_date: Union[date, datetime, str, None],
    actor: Optional[int] = None
) -> Tuple[Staff, StaffStatusHistory]:
    """
    Altera o status do funcionário e grava uma linha de histórico.

    Deve rodar dentro de uma transação (utils.transactions.run_atomic): o
    histórico e o novo status são gravados juntos ou nenhum dos dois.

    A linha do funcionário é lida com FOR UPDATE, então transições
    concorrentes do mesmo funcionário são serializadas e old_status de cada
    entrada é sempre o new_status da entrada anterior.

    Terminated grava termination_date = effective_date. Sair de Terminated
    não limpa termination_date.

    Returns:
        Tupla (funcionario_atualizado, entrada_de_historico)

    Raises:
        InvalidStatus, ReasonRequired, EffectiveDateRequired, NotFound

    Usage:
        staff, entry = transition(db, tenant_id, staff_id, "on_leave", "Licença médica", date(2026, 2, 1), user_id)
    """
    status, reason, effective = check_transition_input(new_status, reason, effective_date)

    staff = get_by_id(
        db, Staff, staff_id, tenant_id,
        error_message="Funcionário não encontrado",
        for_update=True
    )
    old_status = staff.status.value if staff.status else None

    entry = StaffStatusHistory(
        tenant_id=tenant_id,
        staff_id=staff.id,
        old_status=old_status,
        new_status=status.value,
        reason=reason,
        effective_date=effective,
        changed_by=actor
    )
    db.add(entry)

    transition_status(staff, status, STAFF_STATUS_TRANSITIONS)
    staff.status_reason = entry.reason
    staff.updated_by = actor
    if status == StaffStatus.TERMINATED:
        staff.termination_date = effective

    db.flush()

    logger.info(
        "[STATUS] Funcionário %s: %s -> %s (vigência %s)",
        staff.employee_code, old_status, status.value, effective
    )
    return staff, entry
