"""Tests for challengekit.auth.directory.SqlAccountDirectory."""
import pytest
from sqlalchemy.exc import OperationalError

from challengekit import database
from challengekit.auth.directory import SqlAccountDirectory
from challengekit.auth.exceptions import TransientDependencyFailure
from challengekit.auth.models import UserStatus


class TestLookups:

    def test_find_by_identity_is_exact(self, directory, alice):
        assert directory.find_by_identity("Alice").id == alice.id
        assert directory.find_by_identity("alice") is None
        assert directory.find_by_identity("nobody") is None

    @pytest.mark.parametrize("value", ["alice", "ALICE", "Alice", "alice@example.com", "Alice@Example.com"])
    def test_find_by_email_or_username(self, directory, alice, value):
        found = directory.find_by_email_or_username(value)
        assert found is not None
        assert found.id == alice.id

    def test_find_by_email_or_username_unknown(self, directory, alice):
        assert directory.find_by_email_or_username("nonexistent@x.com") is None

    def test_username_match_wins_over_email_match(self, directory):
        by_email = directory.create_user("carol", "carol@example.com")
        by_username = directory.create_user("Carol@Example.com", "other@example.com")

        found = directory.find_by_email_or_username("carol@example.com")
        assert found.id == by_username.id
        assert found.id != by_email.id

    def test_returned_account_is_usable_after_session(self, directory, alice):
        found = directory.find_by_identity("Alice")
        assert found.email == "alice@example.com"
        assert found.email_status == UserStatus.PENDING


class TestVerificationStatus:

    def test_set_status_persists(self, directory, alice):
        directory.set_verification_status(alice, UserStatus.APPROVED)
        assert alice.is_verified
        assert directory.find_by_identity("Alice").email_status == UserStatus.APPROVED

    def test_set_status_is_idempotent(self, directory, alice):
        directory.set_verification_status(alice, UserStatus.APPROVED)
        directory.set_verification_status(alice, UserStatus.APPROVED)
        assert directory.find_by_identity("Alice").is_verified


class TestUnicity:

    def test_free_username_and_email(self, directory, alice):
        assert directory.verify_user_unicity("carol", "carol@example.com")

    def test_username_taken_case_insensitively(self, directory, alice):
        assert not directory.verify_user_unicity("ALICE", "other@example.com")

    def test_email_taken(self, directory, alice):
        assert not directory.verify_user_unicity("carol", "alice@example.com")

    def test_account_may_match_itself(self, directory, alice, bob):
        assert directory.verify_user_unicity("alice", "alice@example.com", exclude_id=alice.id)
        assert not directory.verify_user_unicity("bob", "alice@example.com", exclude_id=alice.id)


class _BrokenSession:
    def query(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        pass


def test_transient_errors_are_retried_then_reported(monkeypatch):
    sleeps = []
    monkeypatch.setattr(database.time, "sleep", sleeps.append)
    directory = SqlAccountDirectory(_BrokenSession)

    with pytest.raises(TransientDependencyFailure) as exc:
        directory.find_by_identity("alice")

    assert exc.value.dependency == "database"
    assert len(sleeps) == database.settings.db_retry_max_attempts - 1
