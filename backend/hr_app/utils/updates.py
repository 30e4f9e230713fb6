"""
Update Helpers - Atualização de entidades com lock otimista
"""
import logging
from typing import TypeVar, Type, List
from sqlalchemy import update
from sqlalchemy.orm import Session
from pydantic import BaseModel

from hr_app.core.errors import ConflictError
from hr_app.utils.db_helpers import get_by_id

logger = logging.getLogger(__name__)

T = TypeVar('T')

# expected_version == 0 desliga a verificação de versão
VERSION_CHECK_DISABLED = 0


def update_values(
    update_data: BaseModel,
    exclude_fields: List[str] = None
) -> dict:
    """
    Extrai do schema Pydantic apenas os campos enviados pelo chamador.

    Usage:
        values = update_values(staff_update, exclude_fields=["version", "updated_by"])
    """
    data = update_data.model_dump(exclude_unset=True)

    if exclude_fields:
        data = {k: v for k, v in data.items() if k not in exclude_fields}

    return data


def conditional_update(
    db: Session,
    model: Type[T],
    entity_id: int,
    tenant_id: int,
    values: dict,
    expected_version: int = VERSION_CHECK_DISABLED
) -> T:
    """
    Grava alterações somente se a versão no banco for a esperada (compare-and-swap).

    Um único UPDATE ... WHERE version = :expected, com version = version + 1.
    Zero linhas afetadas = conflito; nada foi alterado. Não há leitura prévia
    nem lock: quem perde a corrida recebe ConflictError e deve reler e reenviar.

    expected_version == 0 ignora a versão (o UPDATE é aplicado de qualquer
    forma e a versão ainda sobe 1).

    Args:
        db: Sessão do banco
        model: Modelo com colunas id, tenant_id e version
        entity_id: ID da entidade
        tenant_id: ID do tenant
        values: Dict de {campo: valor}
        expected_version: Versão lida pelo chamador (0 = sem verificação)

    Returns:
        Entidade recarregada do banco, já com a nova versão

    Raises:
        NotFound se a entidade não existir no tenant
        ConflictError se a versão no banco for diferente da esperada

    Usage:
        staff = conditional_update(db, Staff, staff_id, tenant_id, {"last_name": "X"}, expected_version=3)
    """
    stmt = update(model).where(
        model.id == entity_id,
        model.tenant_id == tenant_id
    )

    if expected_version != VERSION_CHECK_DISABLED:
        stmt = stmt.where(model.version == expected_version)
    else:
        logger.warning(
            "[UPDATE] %s %s atualizado sem verificação de versão",
            model.__name__, entity_id
        )

    stmt = stmt.values(**values, version=model.version + 1).execution_options(
        synchronize_session=False
    )
    result = db.execute(stmt)

    if result.rowcount == 0:
        # Distinguir "não existe" de "versão divergente"
        get_by_id(db, model, entity_id, tenant_id)
        logger.info(
            "[UPDATE] Conflito de versão em %s %s (esperada %s)",
            model.__name__, entity_id, expected_version
        )
        raise ConflictError()

    return get_by_id(db, model, entity_id, tenant_id)
