"""
Sequencers - Geradores de números sequenciais por tenant

IMPORTANTE: Usa tabela 'sequence_counters' para garantir que números NUNCA
reiniciem nem se repitam, mesmo com várias instâncias do serviço gravando ao
mesmo tempo. A serialização é feita pelo lock de linha do banco, nunca em
memória do processo.
"""
import logging
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from hr_app.core.errors import StorageError
from hr_app.core.tenant_context import require_tenant_id
from hr_app.models.sequence_counter import SequenceCounter

logger = logging.getLogger(__name__)

DEFAULT_DIGITS = 5


def format_code(prefix: str, sequence: int, digits: int = DEFAULT_DIGITS) -> str:
    """
    Formata código no padrão PREFIXO + sequência com zeros à esquerda

    Usage:
        format_code("EMP", 1)   # "EMP00001"
        format_code("EMP", 42)  # "EMP00042"
    """
    return f"{prefix}{sequence:0{digits}d}"


def _counter_filter(tenant_id: int, prefix: str):
    return (
        SequenceCounter.tenant_id == tenant_id,
        SequenceCounter.prefix == prefix,
    )


def _create_counter(db: Session, tenant_id: int, prefix: str) -> bool:
    """
    Cria o contador já com valor 1 dentro de um SAVEPOINT.

    Returns:
        True se esta transação criou o contador; False se outra transação
        concorrente criou primeiro (violação de unicidade em tenant/prefixo)
    """
    try:
        with db.begin_nested():
            db.add(SequenceCounter(tenant_id=tenant_id, prefix=prefix, last_sequence=1))
            db.flush()
        return True
    except IntegrityError:
        logger.info(
            "[SEQUENCIA] Contador %s do tenant %s criado por transação concorrente",
            prefix, tenant_id
        )
        return False


def allocate(db: Session, tenant_id: int, prefix: str) -> int:
    """
    Reserva o próximo número da sequência (tenant, prefixo).

    Deve ser chamado dentro de uma transação ativa (utils.transactions.run_atomic):
    o incremento só fica visível no commit e é desfeito junto com o resto da
    unidade de trabalho em caso de erro - sem buracos na numeração.

    Fluxo:
    1. SELECT ... FOR UPDATE na linha do contador (bloqueia concorrentes)
    2. Não existe: cria com valor 1 e retorna 1
    3. Existe: UPDATE last_sequence = last_sequence + 1 e retorna o novo valor

    Args:
        db: Sessão do banco (com transação aberta)
        tenant_id: ID do tenant
        prefix: Prefixo (ex: "EMP")

    Returns:
        Número reservado (1, 2, 3...)

    Raises:
        TenantRequired se tenant_id não estiver definido
        StorageError se a escrita falhar

    Usage:
        seq = allocate(db, tenant_id, "EMP")
        code = format_code("EMP", seq)  # "EMP00001"
    """
    tenant_id = require_tenant_id(tenant_id)

    if not db.in_transaction():
        raise RuntimeError("allocate() exige uma transação ativa")

    try:
        counter = db.execute(
            select(SequenceCounter)
            .where(*_counter_filter(tenant_id, prefix))
            .with_for_update()
        ).scalar_one_or_none()

        if counter is None and _create_counter(db, tenant_id, prefix):
            logger.info("[SEQUENCIA] Contador %s criado para tenant %s", prefix, tenant_id)
            return 1

        # Incremento no próprio banco: nunca reaproveita valor lido em memória
        db.execute(
            update(SequenceCounter)
            .where(*_counter_filter(tenant_id, prefix))
            .values(last_sequence=SequenceCounter.last_sequence + 1)
            .execution_options(synchronize_session=False)
        )
        proximo = db.execute(
            select(SequenceCounter.last_sequence).where(*_counter_filter(tenant_id, prefix))
        ).scalar_one()
    except SQLAlchemyError as e:
        logger.error("[SEQUENCIA] Falha ao reservar %s para tenant %s: %s", prefix, tenant_id, e)
        raise StorageError("Falha ao gerar número sequencial") from e

    logger.debug("[SEQUENCIA] %s reservado para tenant %s", format_code(prefix, proximo), tenant_id)
    return proximo


def peek_next(db: Session, tenant_id: int, prefix: str) -> int:
    """
    Retorna o número que SERIA emitido a seguir, sem reservar.

    Apenas informativo: duas consultas simultâneas podem ver o mesmo valor
    enquanto outro cadastro está em andamento.

    Raises:
        TenantRequired se tenant_id não estiver definido
        StorageError se a leitura falhar
    """
    tenant_id = require_tenant_id(tenant_id)

    try:
        atual = db.execute(
            select(SequenceCounter.last_sequence).where(*_counter_filter(tenant_id, prefix))
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        raise StorageError("Falha ao consultar sequência") from e

    return (atual or 0) + 1
