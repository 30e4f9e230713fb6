"""
Database Helpers - Funções utilitárias para operações de banco de dados
Toda busca é filtrada por tenant_id (isolamento multi-tenant)
"""
from typing import Type, TypeVar, Optional, Any
from sqlalchemy.orm import Session

from hr_app.core.errors import NotFound, ValidationError

T = TypeVar('T')


def get_by_id(
    db: Session,
    model: Type[T],
    entity_id: int,
    tenant_id: int,
    raise_not_found: bool = True,
    error_message: str = None,
    for_update: bool = False
) -> Optional[T]:
    """
    Busca entidade por ID e Tenant ID com validação automática.

    Sempre relê do banco (populate_existing), inclusive quando a entidade
    já está no identity map da sessão - necessário depois de UPDATEs emitidos
    direto no Core.

    Args:
        db: Sessão do banco de dados
        model: Classe do modelo SQLAlchemy
        entity_id: ID da entidade
        tenant_id: ID do tenant para isolamento multi-tenant
        raise_not_found: Se True, levanta NotFound quando não encontrado
        error_message: Mensagem customizada de erro (opcional)
        for_update: Se True, trava a linha até o fim da transação (SELECT ... FOR UPDATE)

    Returns:
        Entidade encontrada ou None

    Raises:
        NotFound se raise_not_found=True e entidade não existir

    Usage:
        staff = get_by_id(db, Staff, staff_id, tenant_id)
        staff = get_by_id(db, Staff, staff_id, tenant_id, for_update=True)
    """
    query = db.query(model).filter(
        model.id == entity_id,
        model.tenant_id == tenant_id
    ).populate_existing()

    if for_update:
        query = query.with_for_update()

    entity = query.first()

    if not entity and raise_not_found:
        msg = error_message or f"{model.__name__} não encontrado"
        raise NotFound(msg)

    return entity


def get_by_field(
    db: Session,
    model: Type[T],
    field_name: str,
    field_value: Any,
    tenant_id: int,
    error_message: str = None
) -> T:
    """
    Busca entidade por um campo único dentro do tenant.

    Raises:
        NotFound se não existir

    Usage:
        staff = get_by_field(db, Staff, "employee_code", "EMP00001", tenant_id)
    """
    field = getattr(model, field_name)
    entity = db.query(model).filter(
        field == field_value,
        model.tenant_id == tenant_id
    ).first()

    if not entity:
        msg = error_message or f"{model.__name__} não encontrado"
        raise NotFound(msg)

    return entity


def validate_fk(
    db: Session,
    model: Type[T],
    fk_id: int,
    tenant_id: int,
    field_name: str = None
) -> T:
    """
    Valida existência de uma referência dentro do tenant.

    Diferente de get_by_id: referência inexistente é erro de entrada
    (ValidationError), não NotFound do registro principal.

    Raises:
        ValidationError se a referência não existir

    Usage:
        manager = validate_fk(db, Staff, data.reporting_manager_id, tenant_id, "Gestor")
    """
    entity = db.query(model).filter(
        model.id == fk_id,
        model.tenant_id == tenant_id
    ).first()

    if not entity:
        name = field_name or model.__name__
        raise ValidationError(f"{name} não encontrado")

    return entity
