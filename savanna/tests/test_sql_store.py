from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from savanna.core.auth.backend import StoreErrorKind
from savanna.core.profiles.models import ProfileCompleteness
from savanna.core.profiles.resolver import PROBE_ID_PREFIX, ProfileResolver
from savanna.extensions import db
from savanna.integrations.database.models import Organization, UserProfile
from savanna.integrations.database.store import SqlTableStore, classify_exception

pytestmark = pytest.mark.integration


def test_insert_returns_stored_rows(app):
    store = SqlTableStore()

    result = store.insert("user_profiles", [{"id": "user-42", "email": "e@x.com", "user_type": "supplier"}])

    assert result.ok
    row = result.data[0]
    assert row["id"] == "user-42"
    assert row["kyc_status"] == "pending"
    assert isinstance(row["created_at"], str)
    assert db.session.get(UserProfile, "user-42") is not None


def test_select_one_embeds_organization(app):
    org = Organization(name="Wanjiku General Store", county="Nairobi")
    db.session.add(org)
    db.session.commit()
    db.session.add(UserProfile(id="user-42", email="e@x.com", organization_id=org.id))
    db.session.commit()

    result = SqlTableStore().select_one("user_profiles", {"id": "user-42"}, embed={"organization": "organizations"})

    assert result.ok
    assert result.data["organization"]["name"] == "Wanjiku General Store"


def test_select_one_without_related_row_embeds_none(app):
    db.session.add(UserProfile(id="user-42"))
    db.session.commit()

    result = SqlTableStore().select_one("user_profiles", {"id": "user-42"}, embed={"organization": "organizations"})

    assert result.data["organization"] is None


def test_missing_row_is_no_rows(app):
    result = SqlTableStore().select_one("user_profiles", {"id": "nobody"})

    assert result.error_kind == StoreErrorKind.NO_ROWS
    assert result.error.code == "PGRST116"


def test_unknown_table_and_columns(app):
    store = SqlTableStore()

    assert store.select_one("profiles", {"id": "x"}).error_kind == StoreErrorKind.TABLE_MISSING
    assert store.insert("profiles", [{"id": "x"}]).error_kind == StoreErrorKind.TABLE_MISSING
    assert store.select_one("user_profiles", {"handle": "x"}).error_kind == StoreErrorKind.UNKNOWN_COLUMN
    assert store.delete("user_profiles", {"handle": "x"}).error_kind == StoreErrorKind.UNKNOWN_COLUMN
    assert store.insert("user_profiles", [{"id": "x", "handle": "x"}]).error_kind == StoreErrorKind.UNKNOWN_COLUMN


def test_duplicate_insert_is_duplicate_key(app):
    store = SqlTableStore()
    store.insert("user_profiles", [{"id": "user-42"}])

    result = store.insert("user_profiles", [{"id": "user-42"}])

    assert result.error_kind == StoreErrorKind.DUPLICATE_KEY
    # The session stays usable after the rollback.
    assert store.select_one("user_profiles", {"id": "user-42"}).ok


def test_delete_reports_rowcount(app):
    store = SqlTableStore()
    store.insert("user_profiles", [{"id": "probe-1"}])

    assert store.delete("user_profiles", {"id": "probe-1"}).data == 1
    assert store.delete("user_profiles", {"id": "probe-1"}).data == 0


def test_update_binds_iso_timestamps(app):
    store = SqlTableStore()
    store.insert("user_profiles", [{"id": "user-42"}])

    result = store.update("user_profiles", {"last_login_date": "2026-10-17T09:30:00+03:00"}, {"id": "user-42"})

    assert result.ok
    assert result.data == 1
    profile = db.session.get(UserProfile, "user-42", populate_existing=True)
    assert profile.last_login_date == datetime(2026, 10, 17, 6, 30)


def test_update_failures_are_classified(app):
    store = SqlTableStore()

    assert store.update("user_profiles", {"location": "Nakuru"}, {"id": "nobody"}).data == 0
    assert store.update("profiles", {"location": "Nakuru"}, {"id": "x"}).error_kind == StoreErrorKind.TABLE_MISSING
    assert store.update("user_profiles", {"location": "Nakuru"}, {"handle": "x"}).error_kind == (
        StoreErrorKind.UNKNOWN_COLUMN
    )
    assert store.update("user_profiles", {"last_login_date": "yesterday"}, {"id": "x"}).error_kind == (
        StoreErrorKind.OTHER
    )


@pytest.mark.parametrize(
    "exc, kind",
    [
        (OperationalError("SELECT", {}, Exception("no such table: user_profiles")), StoreErrorKind.TABLE_MISSING),
        (ProgrammingError("SELECT", {}, Exception('relation "profiles" does not exist')), StoreErrorKind.TABLE_MISSING),
        (ProgrammingError("INSERT", {}, Exception('column "handle" of relation "user_profiles" does not exist')), StoreErrorKind.UNKNOWN_COLUMN),
        (ProgrammingError("INSERT", {}, Exception("permission denied for table user_profiles")), StoreErrorKind.ACCESS_DENIED),
        (OperationalError("INSERT", {}, Exception("canceling statement due to statement timeout")), StoreErrorKind.TIMEOUT),
        (OperationalError("INSERT", {}, Exception("database is locked")), StoreErrorKind.TIMEOUT),
        (IntegrityError("INSERT", {}, Exception('duplicate key value violates unique constraint "user_profiles_pkey"')), StoreErrorKind.DUPLICATE_KEY),
        (IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed: auth_account.email")), StoreErrorKind.OTHER),
    ],
)
def test_classify_exception(exc, kind):
    assert classify_exception(exc).kind == kind


def test_resolver_creates_then_reads_profile(app):
    resolver = ProfileResolver(SqlTableStore())
    metadata = {"first_name": "Amina", "user_type": "supplier", "location": {"county": "Kisumu", "town": "Kondele"}}

    created = resolver.resolve("user-42", email="e@x.com", metadata=metadata)
    stored = resolver.resolve("user-42", email="e@x.com", metadata=metadata)

    assert created.completeness == ProfileCompleteness.FULL
    assert stored.completeness == ProfileCompleteness.STORED
    assert stored.get("location") == "Kisumu"
    assert stored.user_type == "supplier"
    assert stored.get("organization") is None
    ids = [row.id for row in UserProfile.query.all()]
    assert ids == ["user-42"]
    assert not any(profile_id.startswith(PROBE_ID_PREFIX) for profile_id in ids)
