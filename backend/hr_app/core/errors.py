"""
Erros de domínio do módulo de RH

Cada erro carrega status_code e detail, no mesmo formato que a camada HTTP
usa em HTTPException, para que o chamador apenas traduza o erro em resposta.

Hierarquia:
    AppError
    ├── ValidationError (400)
    │   ├── TenantRequired
    │   ├── InvalidStatus
    │   ├── ReasonRequired
    │   └── EffectiveDateRequired
    ├── NotFound (404)
    ├── ConflictError (409)
    │   └── DuplicateCode
    └── StorageError (503)
        └── OperationCancelled
"""
from typing import List, Optional


class AppError(Exception):
    """Erro base do módulo"""
    status_code = 500
    default_detail = "Erro interno"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"status_code": self.status_code, "detail": self.detail, "error": type(self).__name__}


class ValidationError(AppError):
    """
    Entrada malformada ou ausente.
    Sempre detectado antes de abrir transação - nunca causa escrita parcial.
    """
    status_code = 400
    default_detail = "Dados inválidos"

    def __init__(self, detail: str = None, errors: Optional[List[dict]] = None):
        super().__init__(detail)
        self.errors = errors or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
        return data


class TenantRequired(ValidationError):
    default_detail = "Tenant não identificado"


class InvalidStatus(ValidationError):
    default_detail = "Status inválido"


class ReasonRequired(ValidationError):
    default_detail = "Motivo da alteração de status é obrigatório"


class EffectiveDateRequired(ValidationError):
    default_detail = "Data de vigência é obrigatória"


class NotFound(AppError):
    status_code = 404
    default_detail = "Registro não encontrado"


class ConflictError(AppError):
    """
    Versão divergente (lock otimista) ou violação de unicidade.
    Nenhum efeito colateral ocorreu - o chamador deve reler e reenviar.
    """
    status_code = 409
    default_detail = "Registro modificado por outro usuário. Recarregue e tente novamente"


class DuplicateCode(ConflictError):
    default_detail = "Código de funcionário já cadastrado"


class StorageError(AppError):
    """Falha de I/O ou de transação no banco. Não há retry automático."""
    status_code = 503
    default_detail = "Falha ao acessar o banco de dados"


class OperationCancelled(StorageError):
    default_detail = "Operação cancelada antes do commit"
