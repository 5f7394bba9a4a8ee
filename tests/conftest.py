"""Shared fixtures for the ChallengeKit test suite."""
from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from challengekit.auth.clock import FixedClock
from challengekit.auth.crypto import AesGcmCipher
from challengekit.auth.directory import SqlAccountDirectory
from challengekit.auth.service import ChallengeService
from challengekit.auth.tokens import NonceCodec
from challengekit.config import ChallengeSettings, EmailSettings, Settings
from challengekit.database import create_app_engine, init_db
from challengekit.services.templates import TemplateRenderer

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)
SECRET = "test-secret-key"


class FakeNotifier:
    """Records every message instead of sending it."""

    def __init__(self, result: bool = True):
        self.result = result
        self.sent = []

    async def send(self, channel, subject, body, recipient):
        self.sent.append({
            "channel": channel,
            "subject": subject,
            "body": body,
            "recipient": recipient,
        })
        return self.result


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture()
def cipher() -> AesGcmCipher:
    return AesGcmCipher(SECRET)


@pytest.fixture()
def codec(cipher, clock) -> NonceCodec:
    return NonceCodec(cipher, clock)


@pytest.fixture()
def session_factory():
    engine = create_app_engine("sqlite://")
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def directory(session_factory) -> SqlAccountDirectory:
    return SqlAccountDirectory(session_factory)


@pytest.fixture()
def alice(directory):
    return directory.create_user("Alice", "alice@example.com", name="Alice Liddell")


@pytest.fixture()
def bob(directory):
    return directory.create_user("bob", "bob@example.com")


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture()
def app_settings() -> Settings:
    return Settings(
        challenge=ChallengeSettings(
            secret_key=SECRET,
            registered_website="Example Site",
            contact_email="help@example.com",
        ),
        email=EmailSettings(),
        base_url="https://example.com/",
    )


@pytest.fixture()
def service(codec, directory, notifier, renderer, clock, app_settings) -> ChallengeService:
    return ChallengeService(
        codec=codec,
        directory=directory,
        notifier=notifier,
        renderer=renderer,
        clock=clock,
        app_settings=app_settings,
    )
