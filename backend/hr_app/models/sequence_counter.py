"""
Modelo para controle de sequências numéricas
Garante que números nunca reiniciem mesmo se registros forem deletados
"""
from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint
from hr_app.models.base import Base, TenantMixin, utcnow


class SequenceCounter(Base, TenantMixin):
    """
    Armazena o último número emitido para cada prefixo por tenant.
    Esta tabela NUNCA deve ser limpa, garantindo sequência contínua.

    Alterada apenas por utils.sequencers.allocate, sempre dentro de transação.
    """
    __tablename__ = "sequence_counters"

    id = Column(Integer, primary_key=True, index=True)
    prefix = Column(String(10), nullable=False)  # EMP, etc
    last_sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('tenant_id', 'prefix', name='uq_sequence_counter_tenant_prefix'),
    )

    def __repr__(self):
        return f"<SequenceCounter tenant={self.tenant_id} {self.prefix}={self.last_sequence}>"
