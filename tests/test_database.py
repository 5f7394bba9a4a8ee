"""Tests for challengekit.database sessions and retry policy."""
import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.pool import StaticPool

from challengekit import database
from challengekit.auth.models import User, UserStatus


def _user(username, email):
    return User(
        username=username,
        normalized_username=username.lower(),
        email=email,
        email_status=UserStatus.PENDING,
    )


class TestSessionScope:

    def test_commits_on_success(self, session_factory):
        with database.session_scope(session_factory) as db:
            db.add(_user("dave", "dave@example.com"))

        with database.session_scope(session_factory) as db:
            assert db.query(User).filter(User.username == "dave").count() == 1

    def test_rolls_back_on_error(self, session_factory):
        with pytest.raises(RuntimeError):
            with database.session_scope(session_factory) as db:
                db.add(_user("erin", "erin@example.com"))
                db.flush()
                raise RuntimeError("boom")

        with database.session_scope(session_factory) as db:
            assert db.query(User).filter(User.username == "erin").count() == 0


class TestRetry:

    def test_transient_error_is_retried(self, monkeypatch):
        monkeypatch.setattr(database.time, "sleep", lambda seconds: None)
        calls = []

        @database.with_retry
        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise OperationalError("SELECT 1", {}, Exception("database is locked"))
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 2

    def test_integrity_error_is_not_retried(self, monkeypatch):
        monkeypatch.setattr(database.time, "sleep", lambda seconds: None)
        calls = []

        @database.with_retry
        def duplicate():
            calls.append(1)
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        with pytest.raises(IntegrityError):
            duplicate()
        assert len(calls) == 1


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_in_memory_engine_shares_one_database(url):
    engine = database.create_app_engine(url)
    assert isinstance(engine.pool, StaticPool)
    engine.dispose()


def test_file_engine_creates_accounts_table(tmp_path):
    engine = database.create_app_engine(f"sqlite:///{tmp_path / 'accounts.db'}")
    database.init_db(bind=engine)
    assert inspect(engine).has_table(User.__tablename__)
    engine.dispose()
