"""
Tests for the atomic unit of work, storage error mapping and opt-in retry.
"""
import threading
from datetime import date

import pytest
from sqlalchemy import event, select
from sqlalchemy.exc import IntegrityError, OperationalError

from hr_app.core.errors import (
    ConflictError, DuplicateCode, StorageError, OperationCancelled, NotFound
)
from hr_app.models import (
    Staff, StaffStatus, StaffType, Gender, SequenceCounter, StaffStatusHistory
)
from hr_app.utils.sequencers import allocate, peek_next
from hr_app.utils.transactions import run_atomic, retry_on_conflict, translate_storage_error


def _insert_raw_staff(session_factory, tenant_id, employee_code):
    """Grava funcionário direto no banco, sem passar pelo contador"""
    with session_factory() as db:
        db.add(Staff(
            tenant_id=tenant_id,
            employee_code=employee_code,
            employee_code_prefix="EMP",
            first_name="Importado",
            last_name="Legado",
            date_of_birth=date(1980, 1, 1),
            gender=Gender.MALE,
            work_email="legado@escolaalfa.in",
            work_phone="000",
            staff_type=StaffType.NON_TEACHING,
            join_date=date(2010, 1, 1),
            status=StaffStatus.ACTIVE,
        ))
        db.commit()


class TestRunAtomic:
    """All-or-nothing commit."""

    def test_commits_and_returns_result(self, session_factory, tenant_id):
        with session_factory() as db:
            assert run_atomic(db, lambda tx: allocate(tx, tenant_id, "EMP")) == 1
            assert not db.in_transaction()

        with session_factory() as db:
            assert peek_next(db, tenant_id, "EMP") == 2

    def test_rejects_open_transaction(self, session_factory, tenant_id):
        with session_factory() as db:
            db.execute(select(1))
            with pytest.raises(RuntimeError):
                run_atomic(db, lambda tx: allocate(tx, tenant_id, "EMP"))

    def test_domain_error_propagates_unchanged(self, session_factory, tenant_id):
        error = NotFound("Funcionário não encontrado")

        def fail(tx):
            allocate(tx, tenant_id, "EMP")
            raise error

        with session_factory() as db:
            with pytest.raises(NotFound) as exc:
                run_atomic(db, fail)

        assert exc.value is error
        with session_factory() as db:
            assert peek_next(db, tenant_id, "EMP") == 1

    def test_interrupt_rolls_back(self, session_factory, tenant_id):
        def interrupted(tx):
            allocate(tx, tenant_id, "EMP")
            raise KeyboardInterrupt()

        with session_factory() as db:
            with pytest.raises(KeyboardInterrupt):
                run_atomic(db, interrupted)

        with session_factory() as db:
            assert peek_next(db, tenant_id, "EMP") == 1

    def test_cancel_event(self, session_factory, tenant_id):
        cancel = threading.Event()

        def allocate_and_cancel(tx):
            value = allocate(tx, tenant_id, "EMP")
            cancel.set()
            return value

        with session_factory() as db:
            with pytest.raises(OperationCancelled):
                run_atomic(db, allocate_and_cancel, cancel_event=cancel)

        with session_factory() as db:
            assert peek_next(db, tenant_id, "EMP") == 1

    def test_unset_cancel_event_commits(self, session_factory, tenant_id):
        with session_factory() as db:
            assert run_atomic(db, lambda tx: allocate(tx, tenant_id, "EMP"), threading.Event()) == 1


class TestCreateRollback:
    """A failed insert gives its sequence number back."""

    def test_duplicate_code_rolls_back_counter(self, service, session_factory, tenant_id, staff_data):
        _insert_raw_staff(session_factory, tenant_id, "EMP00001")

        with pytest.raises(DuplicateCode):
            service.create(tenant_id, staff_data())

        assert service.count_staff(tenant_id) == 1
        assert service.preview_next_code(tenant_id) == "EMP00001"

    def test_cancelled_create_leaves_nothing(self, service, tenant_id, staff_data):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelled):
            service.create(tenant_id, staff_data(), cancel_event=cancel)

        assert service.count_staff(tenant_id) == 0
        assert service.preview_next_code(tenant_id) == "EMP00001"

    def test_duplicate_code_is_a_conflict(self):
        assert issubclass(DuplicateCode, ConflictError)
        assert DuplicateCode().status_code == 409


def _fail_flush_of(session_factory, model):
    """Faz o flush falhar como erro de I/O quando houver um novo `model` na sessão"""

    def before_flush(session, flush_context, instances):
        if any(isinstance(obj, model) for obj in session.new):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    event.listen(session_factory, "before_flush", before_flush)
    return before_flush


def _counter_rows(session_factory, tenant_id):
    with session_factory() as db:
        return [
            c.last_sequence for c in
            db.query(SequenceCounter).filter(SequenceCounter.tenant_id == tenant_id).all()
        ]


class TestStorageFailure:
    """Real database failures surface as StorageError and leave nothing behind."""

    def test_missing_counter_table(self, service, engine, tenant_id, staff_data):
        SequenceCounter.__table__.drop(engine)

        with pytest.raises(StorageError):
            service.create(tenant_id, staff_data())

        assert service.count_staff(tenant_id) == 0
        with pytest.raises(StorageError):
            service.preview_next_code(tenant_id)

    def test_allocate_wraps_driver_error(self, session_factory, engine, tenant_id):
        SequenceCounter.__table__.drop(engine)

        with session_factory() as db:
            with pytest.raises(StorageError) as exc:
                run_atomic(db, lambda tx: allocate(tx, tenant_id, "EMP"))

        assert isinstance(exc.value.__cause__, OperationalError)

    def test_failed_first_insert_leaves_no_counter(self, service, session_factory, tenant_id, staff_data):
        listener = _fail_flush_of(session_factory, Staff)

        with pytest.raises(StorageError) as exc:
            service.create(tenant_id, staff_data())
        event.remove(session_factory, "before_flush", listener)

        assert not isinstance(exc.value, ConflictError)
        assert _counter_rows(session_factory, tenant_id) == []
        assert service.count_staff(tenant_id) == 0

    def test_failed_insert_keeps_counter(self, service, session_factory, tenant_id, staff, staff_data):
        listener = _fail_flush_of(session_factory, Staff)

        with pytest.raises(StorageError):
            service.create(tenant_id, staff_data(first_name="Bia"))
        event.remove(session_factory, "before_flush", listener)

        assert _counter_rows(session_factory, tenant_id) == [1]
        assert service.count_staff(tenant_id) == 1
        assert service.preview_next_code(tenant_id) == "EMP00002"

    def test_failed_history_insert_keeps_status(self, service, session_factory, tenant_id, staff):
        listener = _fail_flush_of(session_factory, StaffStatusHistory)

        with pytest.raises(StorageError):
            service.update_status(tenant_id, staff.id, "terminated", "Fim de contrato", date(2026, 4, 30))
        event.remove(session_factory, "before_flush", listener)

        current = service.get_staff(tenant_id, staff.id)
        assert current.status == StaffStatus.ACTIVE
        assert current.status_reason is None
        assert current.termination_date is None
        assert service.get_status_history(tenant_id, staff.id) == []


class TestReadsDuringWrite:
    """Read-only calls do not queue behind an open write transaction."""

    def test_reads_see_last_commit(self, service, session_factory, tenant_id, staff):
        with session_factory() as writer:
            writer.begin()
            allocate(writer, tenant_id, "EMP")

            assert service.preview_next_code(tenant_id) == "EMP00002"
            assert service.get_staff(tenant_id, staff.id).employee_code == "EMP00001"
            assert service.count_staff(tenant_id) == 1

            writer.rollback()

        assert service.preview_next_code(tenant_id) == "EMP00002"


class TestTranslateStorageError:
    """SQLAlchemy errors mapped to domain errors."""

    def test_employee_code_unique_violation(self):
        exc = IntegrityError(
            "INSERT INTO staff ...", {},
            Exception("UNIQUE constraint failed: staff.tenant_id, staff.employee_code")
        )

        assert isinstance(translate_storage_error(exc), DuplicateCode)

    def test_other_integrity_error(self):
        exc = IntegrityError("INSERT INTO status_history ...", {}, Exception("NOT NULL constraint failed"))

        error = translate_storage_error(exc)
        assert isinstance(error, StorageError)
        assert not isinstance(error, ConflictError)

    def test_operational_error(self):
        exc = OperationalError("SELECT 1", {}, Exception("database is locked"))

        error = translate_storage_error(exc)
        assert isinstance(error, StorageError)
        assert error.status_code == 503


class TestRetryOnConflict:
    """Bounded retry, only when the caller asks for it."""

    def test_retries_until_success(self):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise ConflictError()
            return "ok"

        assert retry_on_conflict(flaky, attempts=3) == "ok"
        assert len(calls) == 3

    def test_gives_up_with_last_conflict(self):
        calls = []

        def always_conflicts():
            calls.append(1)
            raise ConflictError()

        with pytest.raises(ConflictError):
            retry_on_conflict(always_conflicts, attempts=2)
        assert len(calls) == 2

    def test_duplicate_code_is_not_retried(self):
        calls = []

        def duplicate():
            calls.append(1)
            raise DuplicateCode()

        with pytest.raises(DuplicateCode):
            retry_on_conflict(duplicate, attempts=5)
        assert len(calls) == 1

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            retry_on_conflict(lambda: None, attempts=0)

    def test_reread_and_resubmit(self, service, tenant_id, staff):
        service.update(tenant_id, staff.id, {"bio": "outra edição"}, expected_version=1)
        stale = {"version": 1}

        def attempt():
            version = stale.pop("version", None)
            if version is None:
                version = service.get_staff(tenant_id, staff.id).version
            return service.update(tenant_id, staff.id, {"last_name": "Final"}, expected_version=version)

        updated = retry_on_conflict(attempt, attempts=3)

        assert updated.last_name == "Final"
        assert updated.version == 3
