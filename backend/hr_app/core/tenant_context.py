from contextvars import ContextVar
from typing import Optional

from hr_app.core.errors import TenantRequired

# Tenant da operação em andamento (um valor por thread / tarefa)
# Preenchido pela camada que recebe a requisição; o serviço aceita também tenant explícito
_current_tenant: ContextVar[Optional[int]] = ContextVar('hr_tenant_id', default=None)


def get_current_tenant_id() -> Optional[int]:
    return _current_tenant.get()


def set_current_tenant_id(tenant_id: int) -> None:
    """Fixa o tenant para as chamadas seguintes no mesmo contexto"""
    _current_tenant.set(tenant_id)


def clear_current_tenant_id() -> None:
    _current_tenant.set(None)


def require_tenant_id(tenant_id: Optional[int] = None) -> int:
    """
    Tenant explícito tem prioridade; sem ele, usa o do contexto

    Raises:
        TenantRequired se nenhum dos dois estiver definido
    """
    resolved = get_current_tenant_id() if tenant_id is None else tenant_id
    if resolved is None:
        raise TenantRequired()
    return resolved
