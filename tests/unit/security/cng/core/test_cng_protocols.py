"""Тесты для core/protocols.py: реализации удовлетворяют протоколам."""

from __future__ import annotations

from src.security.cng.core.protocols import (
    CryptoTransformProtocol,
    EngineProtocol,
    KeyedHashProtocol,
    SecureRandomProtocol,
)
from src.security.cng.engine import CryptographyEngine
from src.security.cng.hmac import HMACSHA384
from src.security.cng.rng import SecureRandom
from src.security.cng.symmetric import AES


def test_engine_protocol() -> None:
    assert isinstance(CryptographyEngine(), EngineProtocol)


def test_secure_random_protocol() -> None:
    assert isinstance(SecureRandom(), SecureRandomProtocol)


def test_hmac_is_transform_and_keyed_hash() -> None:
    with HMACSHA384(b"k" * 16) as mac:
        assert isinstance(mac, CryptoTransformProtocol)
        assert isinstance(mac, KeyedHashProtocol)


def test_symmetric_transform_protocol() -> None:
    with AES().create_encryptor() as encryptor:
        assert isinstance(encryptor, CryptoTransformProtocol)
        assert not isinstance(encryptor, KeyedHashProtocol)
