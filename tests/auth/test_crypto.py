"""Tests for challengekit.auth.crypto."""
import pytest

from challengekit.auth.crypto import NONCE_SIZE, TAG_SIZE, AesGcmCipher, cipher_from_settings, derive_key
from challengekit.auth.exceptions import CipherError
from challengekit.config import ChallengeSettings


def test_round_trip():
    cipher = AesGcmCipher("secret")
    assert cipher.decrypt(cipher.encrypt(b"payload")) == b"payload"


def test_layout_and_fresh_nonce():
    cipher = AesGcmCipher("secret")
    first = cipher.encrypt(b"payload")
    second = cipher.encrypt(b"payload")
    assert len(first) == NONCE_SIZE + len(b"payload") + TAG_SIZE
    assert first[:NONCE_SIZE] != second[:NONCE_SIZE]


def test_wrong_key_fails():
    blob = AesGcmCipher("secret").encrypt(b"payload")
    with pytest.raises(CipherError):
        AesGcmCipher("other").decrypt(blob)


@pytest.mark.parametrize("blob", [b"", b"short", b"\x00" * (NONCE_SIZE + TAG_SIZE - 1)])
def test_short_input_fails(blob):
    with pytest.raises(CipherError):
        AesGcmCipher("secret").decrypt(blob)


def test_previous_keys_decrypt_only():
    old = AesGcmCipher("old")
    rotated = AesGcmCipher("new", previous_keys=["old"])

    assert rotated.decrypt(old.encrypt(b"x")) == b"x"
    with pytest.raises(CipherError):
        old.decrypt(rotated.encrypt(b"x"))


def test_derive_key():
    assert len(derive_key("secret")) == 32
    assert derive_key("secret") == derive_key("secret")
    assert derive_key("secret") != derive_key("Secret")
    with pytest.raises(ValueError):
        derive_key("")


def test_cipher_from_settings():
    old_blob = AesGcmCipher("retired").encrypt(b"x")
    cipher = cipher_from_settings(
        ChallengeSettings(secret_key="current", previous_secret_keys="retired, ,")
    )
    assert cipher.decrypt(old_blob) == b"x"
