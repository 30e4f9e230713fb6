"""
Model para o histórico de status de funcionários
Registro imutável (append-only) de cada transição de status
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Index
from hr_app.models.base import Base, TenantMixin, utcnow


class StaffStatusHistory(Base, TenantMixin):
    """
    Uma linha por transição de status bem-sucedida

    Campos:
    - old_status: status anterior (vazio na primeira transição registrada)
    - new_status: status aplicado ao funcionário
    - reason: motivo informado
    - effective_date: data de vigência
    - changed_by: quem fez a alteração
    - changed_at: quando a alteração foi gravada

    Criado apenas por utils.status.transition, na mesma transação que a
    atualização do status. Nunca é alterado nem removido.
    """
    __tablename__ = "status_history"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey('staff.id'), nullable=False)

    old_status = Column(String(20), nullable=True)
    new_status = Column(String(20), nullable=False)
    reason = Column(Text, nullable=False)
    effective_date = Column(Date, nullable=False)

    changed_by = Column(Integer, nullable=True)
    changed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_status_history_staff', 'tenant_id', 'staff_id'),
    )

    def __repr__(self):
        return f"<StaffStatusHistory staff={self.staff_id} {self.old_status}->{self.new_status}>"
