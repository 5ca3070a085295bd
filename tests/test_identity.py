import pytest

from repairshop.core.errors import AuthenticationError, AuthorizationError, ConflictError
from repairshop.models.enums import GlobalRole
from repairshop.models.user import User
from repairshop.services import identity
from repairshop.services.identity import (
    authenticate_login,
    bootstrap_superadmin,
    find_user_by_identifier,
    serialize_user,
    superadmin_exists,
)
from repairshop.services.passwords import DUMMY_PASSWORD_HASH, hash_password, verify_password
from tests.factories import make_user


def test_password_hash_is_salted_and_verifiable():
    first = hash_password("s3cret")
    second = hash_password("s3cret")

    assert first != second
    assert first != "s3cret"
    assert verify_password("s3cret", first)
    assert not verify_password("wrong", first)
    assert not verify_password("s3cret", "not-a-bcrypt-hash")
    assert not verify_password("s3cret", "")


def test_lookup_matches_email_or_phone_after_normalizing(db):
    user = make_user(db, "Jane@Example.com", telephone_number=" 255700000001 ")

    assert user.email == "jane@example.com"
    assert find_user_by_identifier(db, "  JANE@example.COM ").id == user.id
    assert find_user_by_identifier(db, "255700000001").id == user.id


@pytest.mark.parametrize("identifier", [None, "", "   "])
def test_blank_identifier_never_matches(db, identifier):
    make_user(db, "someone@example.com")

    assert find_user_by_identifier(db, identifier) is None


def test_duplicate_email_or_phone_conflicts(db):
    make_user(db, "dup@example.com", telephone_number="255700000002")

    with pytest.raises(ConflictError):
        make_user(db, "DUP@example.com")
    with pytest.raises(ConflictError):
        make_user(db, "other@example.com", telephone_number="255700000002")


def test_superadmin_bootstrap_succeeds_exactly_once(db):
    assert not superadmin_exists(db)
    first = bootstrap_superadmin(db, email="root@example.com", password="root-pass")

    with pytest.raises(ConflictError) as exc:
        bootstrap_superadmin(db, email="second@example.com", password="root-pass")

    assert first.role == GlobalRole.SUPERADMIN.value
    assert exc.value.message == "superadmin_already_exists"
    assert db.query(User).count() == 1


def test_login_failures_share_one_outcome(db):
    make_user(db, "known@example.com", password="right")

    with pytest.raises(AuthenticationError) as unknown:
        authenticate_login(db, identifier="nobody@example.com", password="right")
    with pytest.raises(AuthenticationError) as wrong:
        authenticate_login(db, identifier="known@example.com", password="wrong")

    assert unknown.value.message == wrong.value.message == "invalid_credentials"


def test_disabled_account_is_reported_only_after_password_matches(db):
    user = make_user(db, "off@example.com", password="right")
    user.status = "disabled"
    db.commit()

    with pytest.raises(AuthenticationError):
        authenticate_login(db, identifier="off@example.com", password="wrong")
    with pytest.raises(AuthorizationError) as exc:
        authenticate_login(db, identifier="off@example.com", password="right")

    assert exc.value.message == "user_inactive"


def test_successful_login_records_last_login(db):
    user = make_user(db, "ok@example.com", password="right")
    assert user.last_login_at is None

    authenticate_login(db, identifier="ok@example.com", password="right")

    db.refresh(user)
    assert user.last_login_at is not None


def test_serialized_user_never_exposes_hash(db):
    payload = serialize_user(make_user(db, "safe@example.com"))

    assert "password_hash" not in payload
    assert payload["email"] == "safe@example.com"


def test_unknown_identifier_still_runs_a_hash_check(db, monkeypatch):
    checked = []

    def recording_verify(password, password_hash):
        checked.append(password_hash)
        return False

    monkeypatch.setattr(identity, "verify_password", recording_verify)

    with pytest.raises(AuthenticationError):
        authenticate_login(db, identifier="nobody@example.com", password="guess")

    assert checked == [DUMMY_PASSWORD_HASH]
