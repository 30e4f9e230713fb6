"""
Fixtures compartilhadas dos testes do módulo de RH.

Cada teste recebe um banco SQLite novo em tmp_path.
"""
import os

# Antes de importar hr_app: settings é lido no import de hr_app.database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

from datetime import date

import pytest

from hr_app.core.tenant_context import clear_current_tenant_id
from hr_app.database import make_engine, make_session_factory, init_db
from hr_app.models import Tenant
from hr_app.services.staff_service import StaffService


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'hr_test.db'}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


def _make_tenant(session_factory, name, slug):
    with session_factory() as db:
        tenant = Tenant(name=name, slug=slug)
        db.add(tenant)
        db.commit()
        return tenant.id


@pytest.fixture
def tenant_id(session_factory):
    return _make_tenant(session_factory, "Escola Alfa", "escola-alfa")


@pytest.fixture
def other_tenant_id(session_factory):
    return _make_tenant(session_factory, "Escola Beta", "escola-beta")


@pytest.fixture
def service(session_factory):
    return StaffService(session_factory)


@pytest.fixture(autouse=True)
def reset_tenant_context():
    clear_current_tenant_id()
    yield
    clear_current_tenant_id()


@pytest.fixture
def staff_data():
    """Fábrica de payloads válidos de cadastro"""

    def make(**overrides):
        data = {
            "first_name": "Ana",
            "last_name": "Souza",
            "date_of_birth": date(1990, 5, 17),
            "gender": "female",
            "work_email": "ana.souza@escolaalfa.in",
            "work_phone": "+91 98765 43210",
            "staff_type": "teaching",
            "join_date": date(2024, 6, 1),
        }
        data.update(overrides)
        return data

    return make


@pytest.fixture
def staff(service, tenant_id, staff_data):
    return service.create(tenant_id, staff_data())
