from sqlalchemy import Column, Integer, String, Boolean
from hr_app.models.base import Base, TimestampMixin


class Tenant(Base, TimestampMixin):
    """
    Representa uma organização cliente (Multi-Tenant)

    Cada tenant é um namespace isolado com:
    - Seus próprios funcionários
    - Suas próprias sequências de código de funcionário
    - Seu próprio histórico de status
    """
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)

    # Identificação
    name = Column(String(200), nullable=False)
    slug = Column(String(50), unique=True, nullable=False, index=True)  # URL-friendly (ex: "escola-xyz")

    # Status da conta
    active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Tenant {self.name} (ID: {self.id})>"
