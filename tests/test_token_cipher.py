try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.services.token_cipher import TokenCipherService, build_token_cipher


def test_token_cipher_roundtrip() -> None:
    cipher = TokenCipherService(secret="super-secret-key")
    plaintext = '{"refreshToken": "1//refresh"}'

    encrypted = cipher.encrypt(plaintext)
    assert encrypted != plaintext
    assert cipher.decrypt(encrypted) == plaintext


def test_token_cipher_rejects_ciphertext_from_another_secret() -> None:
    encrypted = TokenCipherService(secret="first").encrypt("payload")

    with pytest.raises(ValueError):
        TokenCipherService(secret="second").decrypt(encrypted)


def test_build_token_cipher_is_optional() -> None:
    assert build_token_cipher(None) is None
    assert build_token_cipher("") is None
    assert isinstance(build_token_cipher("secret"), TokenCipherService)


def test_token_cipher_rejects_tampered_file_contents() -> None:
    cipher = TokenCipherService(secret="super-secret-key")
    sealed = cipher.encrypt('{"refreshToken": "1//refresh"}')

    with pytest.raises(ValueError):
        cipher.decrypt(sealed[:-4] + "AAAA")
