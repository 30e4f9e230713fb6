from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import declared_attr
from datetime import datetime, timezone
from hr_app.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TenantMixin:
    """
    Mixin para adicionar tenant_id em TODAS as tabelas
    CRÍTICO para isolamento multi-tenant

    Todas as tabelas que herdam este mixin terão automaticamente:
    - tenant_id (foreign key para tenants.id)
    """

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, ForeignKey('tenants.id'), nullable=False, index=True)


class TimestampMixin:
    """
    Mixin para campos de auditoria temporal
    Todas as tabelas terão created_at e updated_at
    """
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class AuditMixin:
    """
    Mixin para campos de auditoria de usuário
    Registra quem criou e quem atualizou (id do ator, vindo da camada de autenticação)
    """
    created_by = Column(Integer, nullable=True)
    updated_by = Column(Integer, nullable=True)


# Base já foi definida em database.py
# Aqui apenas importamos e exportamos para facilitar
__all__ = ['Base', 'TenantMixin', 'TimestampMixin', 'AuditMixin', 'utcnow']
