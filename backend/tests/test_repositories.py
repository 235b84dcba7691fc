"""
Tests for the repository layer (repositories/*.py)

Covers create/get/list/count/update/delete for things and companies, the
translation of unique-constraint violations into ConflictError and the
not-found behaviour for unknown ids.
"""
import pytest
from uuid import uuid4

from sqlalchemy.exc import DataError, ProgrammingError

from personal_ledger.core.errors import (
    ConflictError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
)
from personal_ledger.core.db import build_session_factory
from personal_ledger.repositories.companies import CompanyRepository
from personal_ledger.repositories.things import ThingRepository
from personal_ledger.schemas.companies import CompanyIn
from personal_ledger.schemas.things import ThingIn

from tests.fixtures.ledger_fixtures import (
    COMPANY_ACME,
    COMPANY_GLOBEX,
    THING_JONES,
    THING_SMITH,
)


@pytest.fixture
def things(db):
    return ThingRepository(db)


@pytest.fixture
def companies(db):
    return CompanyRepository(db)


class TestThingRepositoryCreate:
    """Tests for inserting things."""

    def test_create_then_get_returns_same_fields(self, things):
        created = things.create(ThingIn(**THING_SMITH))
        fetched = things.get_by_id(created.id)

        for field, value in THING_SMITH.items():
            assert getattr(fetched, field) == value
        assert fetched.id is not None
        assert fetched.created_at is not None
        assert fetched.subscribed_at is not None
        assert fetched.updated_at is not None

    def test_create_uses_supplied_id(self, things):
        record_id = uuid4()
        created = things.create(ThingIn(**THING_SMITH), record_id=record_id)
        assert created.id == record_id

    def test_duplicate_id_is_a_conflict(self, things):
        record_id = uuid4()
        things.create(ThingIn(**THING_SMITH), record_id=record_id)

        with pytest.raises(ConflictError, match=f"id {record_id}"):
            things.create(ThingIn(**THING_JONES), record_id=record_id)
        assert things.count() == 1

    def test_duplicate_email_is_a_conflict(self, things):
        first = things.create(ThingIn(**THING_SMITH))

        with pytest.raises(ConflictError):
            things.create(ThingIn(**{**THING_JONES, "email": THING_SMITH["email"]}))

        # The original survives untouched
        fetched = things.get_by_id(first.id)
        assert fetched.last_name == THING_SMITH["last_name"]
        assert things.count() == 1

    def test_get_by_email(self, things):
        created = things.create(ThingIn(**THING_SMITH))
        assert things.get_by_email(THING_SMITH["email"]).id == created.id

        with pytest.raises(NotFoundError):
            things.get_by_email("nobody@example.com")


class TestThingRepositoryUpdate:
    """Tests for full-replace updates."""

    def test_update_replaces_fields(self, things):
        created = things.create(ThingIn(**THING_SMITH))
        updated = things.update(
            created.id,
            ThingIn(first_name="Janet", middle_name=None, last_name="Smythe", email="janet@b.com"),
        )

        fetched = things.get_by_id(created.id)
        assert fetched.first_name == "Janet"
        assert fetched.middle_name is None
        assert fetched.last_name == "Smythe"
        assert fetched.email == "janet@b.com"
        assert updated.updated_at >= updated.created_at

    def test_omitted_optional_fields_are_kept(self, things):
        created = things.create(ThingIn(**THING_SMITH))
        things.update(created.id, ThingIn(last_name="Smythe", email=THING_SMITH["email"]))

        fetched = things.get_by_id(created.id)
        assert fetched.first_name == THING_SMITH["first_name"]
        assert fetched.middle_name == THING_SMITH["middle_name"]
        assert fetched.last_name == "Smythe"

    def test_update_into_existing_email_is_a_conflict(self, things):
        smith = things.create(ThingIn(**THING_SMITH))
        jones = things.create(ThingIn(**THING_JONES))

        with pytest.raises(ConflictError):
            things.update(jones.id, ThingIn(last_name="Jones", email=smith.email))

        assert things.get_by_id(jones.id).email == THING_JONES["email"]

    def test_update_unknown_id(self, things):
        with pytest.raises(NotFoundError):
            things.update(uuid4(), ThingIn(**THING_SMITH))


class TestThingRepositoryDelete:
    """Tests for hard deletes."""

    def test_delete_then_get_is_not_found(self, things):
        created = things.create(ThingIn(**THING_SMITH))
        things.delete(created.id)

        with pytest.raises(NotFoundError):
            things.get_by_id(created.id)

    def test_second_delete_is_not_found(self, things):
        created = things.create(ThingIn(**THING_SMITH))
        things.delete(created.id)

        with pytest.raises(NotFoundError):
            things.delete(created.id)

    def test_unknown_id_is_not_found(self, things):
        with pytest.raises(NotFoundError):
            things.get_by_id(uuid4())


class TestListing:
    """Tests for list ordering, pagination and counting."""

    def test_list_is_ordered_oldest_first(self, things):
        for i in range(5):
            things.create(ThingIn(last_name=f"Person{i}", email=f"p{i}@example.com"))

        rows = things.list()
        assert len(rows) == 5
        assert list(rows) == sorted(rows, key=lambda r: (r.created_at, r.id))

    def test_limit_and_offset(self, things):
        for i in range(7):
            things.create(ThingIn(last_name=f"Person{i}", email=f"p{i}@example.com"))

        everything = things.list()
        page = things.list(limit=3, offset=2)

        assert things.count() == 7
        assert [r.id for r in page] == [r.id for r in everything[2:5]]

    def test_offset_past_end_is_empty(self, things):
        things.create(ThingIn(**THING_SMITH))
        assert things.list(offset=10) == []


class TestCompanyRepository:
    """Tests for the company repository."""

    def test_create_then_get(self, companies):
        created = companies.create(CompanyIn(**COMPANY_ACME))
        fetched = companies.get_by_id(created.id)

        for field, value in COMPANY_ACME.items():
            assert getattr(fetched, field) == value
        assert fetched.created_at is not None

    def test_duplicate_name_is_a_conflict(self, companies):
        companies.create(CompanyIn(**COMPANY_ACME))

        with pytest.raises(ConflictError, match="name"):
            companies.create(CompanyIn(name=COMPANY_ACME["name"]))

    def test_get_by_name(self, companies):
        created = companies.create(CompanyIn(**COMPANY_GLOBEX))
        assert companies.get_by_name("Globex").id == created.id

        with pytest.raises(NotFoundError):
            companies.get_by_name("Initech")

    def test_update_and_delete(self, companies):
        created = companies.create(CompanyIn(**COMPANY_ACME))
        companies.update(created.id, CompanyIn(name="Acme Holdings", description=None))

        fetched = companies.get_by_id(created.id)
        assert fetched.name == "Acme Holdings"
        assert fetched.description is None
        assert fetched.website == COMPANY_ACME["website"]

        companies.delete(created.id)
        with pytest.raises(NotFoundError):
            companies.delete(created.id)


class TestStorageFailures:
    """Connection failures surface as StorageUnavailableError."""

    def test_read_on_unreachable_database(self, broken_engine):
        session = build_session_factory(broken_engine)()
        try:
            with pytest.raises(StorageUnavailableError):
                ThingRepository(session).list()
        finally:
            session.close()

    def test_write_on_unreachable_database(self, broken_engine):
        session = build_session_factory(broken_engine)()
        try:
            with pytest.raises(StorageUnavailableError):
                CompanyRepository(session).create(CompanyIn(**COMPANY_ACME))
        finally:
            session.close()


class TestStorageErrorTranslation:
    """Only connection-level failures are reported as an unavailable database."""

    def test_value_rejected_by_database_is_a_validation_error(self, things):
        with pytest.raises(ValidationError):
            with things._storage("list"):
                raise DataError("SELECT 1 OFFSET %(offset)s", {"offset": 10**20}, Exception("bigint out of range"))

    def test_other_database_errors_are_not_masked(self, things):
        with pytest.raises(ProgrammingError):
            with things._storage("list"):
                raise ProgrammingError("SELECT nope", {}, Exception("syntax error"))

    def test_lookup_with_nul_character(self, things):
        with pytest.raises(ValidationError):
            things.get_by_email("a\x00b@example.com")
