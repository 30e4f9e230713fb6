"""
Transaction Helpers - Unidade de trabalho atômica

Toda escrita de várias linhas (cadastro com número sequencial, alteração de
status com histórico) passa por run_atomic: tudo é confirmado junto ou nada é.
"""
import logging
import threading
from typing import Callable, TypeVar, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hr_app.core.errors import (
    AppError, ConflictError, DuplicateCode, StorageError, OperationCancelled
)

logger = logging.getLogger(__name__)

R = TypeVar('R')


def translate_storage_error(exc: SQLAlchemyError) -> AppError:
    """
    Converte erro do SQLAlchemy em erro de domínio.

    Unicidade do código de funcionário vira DuplicateCode (não adianta
    reenviar); o resto vira StorageError (o chamador pode tentar de novo).
    """
    if isinstance(exc, IntegrityError) and "employee_code" in str(exc.orig):
        return DuplicateCode()
    return StorageError(f"Falha ao acessar o banco de dados ({type(exc).__name__})")


def run_atomic(
    db: Session,
    unit_of_work: Callable[[Session], R],
    cancel_event: Optional[threading.Event] = None
) -> R:
    """
    Executa unit_of_work numa única transação.

    - Sucesso: commit e retorna o resultado de unit_of_work
    - Qualquer exceção (validação, conflito, banco, KeyboardInterrupt...):
      rollback completo, inclusive de números sequenciais já reservados,
      e a exceção segue para o chamador sem alteração
    - Erros do SQLAlchemy são convertidos (DuplicateCode / StorageError)
    - cancel_event setado antes do commit: rollback e OperationCancelled

    Nada é repetido automaticamente.

    Args:
        db: Sessão sem transação em andamento
        unit_of_work: Função que recebe a sessão e faz as escritas
        cancel_event: Sinal de cancelamento (timeout, cliente desconectou)

    Usage:
        staff = run_atomic(db, lambda tx: criar_funcionario(tx, dados))
    """
    if db.in_transaction():
        raise RuntimeError("run_atomic() exige sessão sem transação em andamento")

    try:
        with db.begin():
            result = unit_of_work(db)
            db.flush()
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelled()
    except AppError as e:
        logger.info("[TX] Rollback: %s - %s", type(e).__name__, e.detail)
        raise
    except SQLAlchemyError as e:
        error = translate_storage_error(e)
        logger.warning("[TX] Rollback por erro de banco: %s", e)
        raise error from e

    return result


def retry_on_conflict(fn: Callable[[], R], attempts: int = 3) -> R:
    """
    Repete fn enquanto ela falhar por conflito de versão (opcional, nunca usado por padrão).

    fn deve reler o registro a cada chamada. DuplicateCode não é repetido.
    Esgotadas as tentativas, o último ConflictError é relançado.

    Usage:
        def tentar():
            atual = service.get_staff(tenant_id, staff_id)
            return service.update(tenant_id, staff_id, {"bio": "..."}, expected_version=atual.version)

        staff = retry_on_conflict(tentar, attempts=5)
    """
    if attempts < 1:
        raise ValueError("attempts deve ser >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except DuplicateCode:
            raise
        except ConflictError:
            if attempt == attempts:
                raise
            logger.info("[TX] Conflito de versão, tentativa %s de %s", attempt, attempts)
