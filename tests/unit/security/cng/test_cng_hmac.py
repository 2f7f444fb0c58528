"""
Тесты для hmac.py (EngineHMAC, HMACSHA256/384/512).

Покрытие:
- Совпадение со стандартным hmac (hashlib) для всех вариантов
- Инкрементальный ввод с окнами offset/count
- Жизненный цикл initialize → process → finalize (повторное использование)
- Смена ключа, hash до финализации, закрытие
- Валидация аргументов (ключ, провайдер, размер блока)
- Потоковое хеширование и проверка MAC
- Сбой движка: дескриптор освобождается
"""

from __future__ import annotations

import hashlib
import hmac as std_hmac
import io
from typing import Any, Callable, Iterator, Type
from unittest.mock import MagicMock

import pytest

from src.security.cng.config import PRIMITIVE_PROVIDER, Provider
from src.security.cng.core.exceptions import (
    AlgorithmNotSupportedError,
    InvalidKeyError,
    InvalidParameterError,
    InvalidStateError,
    MacVerificationError,
    ObjectDisposedError,
    TransformFinalizedError,
)
from src.security.cng.engine import CryptographyEngine
from src.security.cng.hmac import (
    CHUNK_SIZE,
    EngineHMAC,
    HMAC_ALGORITHMS,
    HMACSHA256,
    HMACSHA384,
    HMACSHA512,
    get_hmac_algorithm,
)

KEY = b"0123456789abcdef"

# (class, stdlib digest, digest bytes, block bytes)
HMAC_VARIANTS = [
    (HMACSHA256, hashlib.sha256, 32, 64),
    (HMACSHA384, hashlib.sha384, 48, 128),
    (HMACSHA512, hashlib.sha512, 64, 128),
]


@pytest.fixture
def mac() -> Iterator[HMACSHA384]:
    """HMAC-SHA384 с тестовым ключом."""
    transform = HMACSHA384(KEY)
    yield transform
    transform.close()


def reference(key: bytes, data: bytes, digestmod: Callable[..., Any] = hashlib.sha384) -> bytes:
    return std_hmac.new(key, data, digestmod).digest()


# ==============================================================================
# TEST: CORRECTNESS
# ==============================================================================


class TestCorrectness:
    @pytest.mark.parametrize("cls,digestmod,digest_len,block_len", HMAC_VARIANTS)
    def test_matches_stdlib(
        self,
        cls: Type[EngineHMAC],
        digestmod: Callable[..., Any],
        digest_len: int,
        block_len: int,
    ) -> None:
        data = b"The quick brown fox jumps over the lazy dog"
        with cls(KEY) as transform:
            digest = transform.compute_hash(data)
            assert digest == reference(KEY, data, digestmod)
            assert len(digest) == digest_len
            assert transform.hash_size == digest_len * 8
            assert transform.block_size == block_len

    def test_rfc4231_case_2(self) -> None:
        """RFC 4231, Test Case 2 (HMAC-SHA-384)."""
        expected = bytes.fromhex(
            "af45d2e376484031617f78d2b58a6b1b9c7ef464f5a01b47e42ec3736322445e"
            "8e2240ca5e69e2c78b3239ecfab21649"
        )
        with HMACSHA384(b"Jefe") as transform:
            assert transform.compute_hash(b"what do ya want for nothing?") == expected

    def test_chunked_equals_one_shot(self, mac: HMACSHA384) -> None:
        data = bytes(range(256)) * 3
        mac.process_bytes(data[:1])
        mac.process_bytes(data[1:200])
        mac.process_bytes(data[200:])
        assert mac.finalize() == reference(KEY, data)

    def test_offset_and_count_window(self, mac: HMACSHA384) -> None:
        buffer = b"XXXhello worldYYY"
        mac.process_bytes(buffer, 3, 11)
        assert mac.finalize() == reference(KEY, b"hello world")

    def test_count_defaults_to_rest(self, mac: HMACSHA384) -> None:
        mac.process_bytes(b"__tail", 2)
        assert mac.finalize() == reference(KEY, b"tail")

    def test_empty_message(self, mac: HMACSHA384) -> None:
        assert mac.finalize() == reference(KEY, b"")

    def test_long_key_hashed_first(self) -> None:
        long_key = b"k" * 200
        with HMACSHA384(long_key) as transform:
            assert transform.compute_hash(b"data") == reference(long_key, b"data")


# ==============================================================================
# TEST: LIFECYCLE
# ==============================================================================


class TestLifecycle:
    def test_capabilities(self, mac: HMACSHA384) -> None:
        assert mac.can_reuse_transform
        assert mac.can_transform_multiple_blocks
        assert mac.input_block_size == 128
        assert mac.output_block_size == 128
        assert mac.hash_name == "SHA384"

    def test_reuse_after_initialize(self, mac: HMACSHA384) -> None:
        mac.process_bytes(b"first")
        first = mac.finalize()
        mac.initialize()
        mac.process_bytes(b"first")
        assert mac.finalize() == first

    def test_process_after_finalize_rejected(self, mac: HMACSHA384) -> None:
        mac.finalize()
        with pytest.raises(TransformFinalizedError):
            mac.process_bytes(b"late")

    def test_finalize_twice_rejected(self, mac: HMACSHA384) -> None:
        mac.finalize()
        with pytest.raises(TransformFinalizedError):
            mac.finalize()

    def test_hash_before_any_finalize(self, mac: HMACSHA384) -> None:
        with pytest.raises(InvalidStateError):
            _ = mac.hash

    def test_hash_during_computation(self, mac: HMACSHA384) -> None:
        mac.compute_hash(b"done")
        mac.initialize()
        mac.process_bytes(b"partial")
        with pytest.raises(InvalidStateError):
            _ = mac.hash

    def test_hash_after_finalize(self, mac: HMACSHA384) -> None:
        digest = mac.compute_hash(b"data")
        assert mac.hash == digest

    def test_transform_block_passthrough(self, mac: HMACSHA384) -> None:
        assert mac.transform_block(b"abc") == b"abc"
        assert mac.transform_final_block(b"def") == b"def"
        assert mac.hash == reference(KEY, b"abcdef")

    def test_transform_final_block_default_empty(self, mac: HMACSHA384) -> None:
        mac.transform_block(b"abc")
        assert mac.transform_final_block() == b""
        assert mac.hash == reference(KEY, b"abc")

    def test_rekey_discards_partial(self, mac: HMACSHA384) -> None:
        mac.process_bytes(b"discarded")
        mac.key = b"another key"
        mac.process_bytes(b"data")
        assert mac.finalize() == reference(b"another key", b"data")
        assert mac.key == b"another key"

    def test_rekey_drops_previous_hash(self) -> None:
        """Дайджест под старым ключом недоступен после смены ключа."""
        transform = HMACSHA384(b"old key")
        old_digest = transform.compute_hash(b"m")
        old_buffer = transform._hash_value

        transform.key = b"new key"

        with pytest.raises(InvalidStateError):
            _ = transform.hash
        assert old_buffer == bytearray(len(old_digest))
        assert transform.compute_hash(b"m") == reference(b"new key", b"m")
        transform.close()

    def test_close_idempotent(self) -> None:
        transform = HMACSHA384(KEY)
        transform.close()
        transform.close()
        assert transform.closed

    @pytest.mark.parametrize(
        "operation",
        [
            lambda t: t.process_bytes(b"x"),
            lambda t: t.finalize(),
            lambda t: t.initialize(),
            lambda t: t.key,
        ],
    )
    def test_use_after_close(self, operation: Callable[[EngineHMAC], Any]) -> None:
        transform = HMACSHA384(KEY)
        transform.close()
        with pytest.raises(ObjectDisposedError):
            operation(transform)

    def test_close_zeroes_key(self) -> None:
        transform = HMACSHA384(KEY)
        transform.close()
        assert transform._key == bytearray(len(KEY))


# ==============================================================================
# TEST: VALIDATION
# ==============================================================================


class TestValidation:
    def test_none_key(self) -> None:
        with pytest.raises(InvalidKeyError):
            HMACSHA384(None)  # type: ignore[arg-type]

    def test_empty_key(self) -> None:
        with pytest.raises(InvalidKeyError):
            HMACSHA384(b"")

    def test_none_provider(self) -> None:
        with pytest.raises(InvalidParameterError):
            HMACSHA384(KEY, None)  # type: ignore[arg-type]

    def test_argument_errors_open_nothing(self) -> None:
        engine = MagicMock(spec=CryptographyEngine)
        with pytest.raises(InvalidKeyError):
            HMACSHA384(b"", engine=engine)
        engine.open_algorithm.assert_not_called()

    def test_unknown_provider(self) -> None:
        with pytest.raises(AlgorithmNotSupportedError):
            HMACSHA384(KEY, Provider("Smart Card Provider"))

    def test_block_size_mismatch_releases_handle(self) -> None:
        engine = CryptographyEngine()
        opened = []
        original = engine.open_algorithm

        def spy(*args: Any, **kwargs: Any) -> Any:
            handle = original(*args, **kwargs)
            opened.append(handle)
            return handle

        engine.open_algorithm = spy  # type: ignore[method-assign]
        with pytest.raises(InvalidParameterError):
            EngineHMAC(KEY, PRIMITIVE_PROVIDER, "SHA384", 64, engine=engine)
        assert opened and opened[0].closed

    def test_process_bytes_type(self, mac: HMACSHA384) -> None:
        with pytest.raises(TypeError):
            mac.process_bytes("text")  # type: ignore[arg-type]

    def test_process_bytes_window(self, mac: HMACSHA384) -> None:
        with pytest.raises(InvalidParameterError):
            mac.process_bytes(b"abc", 2, 5)

    def test_rekey_with_empty(self, mac: HMACSHA384) -> None:
        with pytest.raises(InvalidKeyError):
            mac.key = b""


# ==============================================================================
# TEST: HELPERS
# ==============================================================================


class TestHelpers:
    def test_compute_hash_stream(self, mac: HMACSHA384) -> None:
        data = b"x" * (CHUNK_SIZE * 2 + 17)
        assert mac.compute_hash_stream(io.BytesIO(data)) == reference(KEY, data)

    def test_compute_hash_stream_rejects_non_stream(self, mac: HMACSHA384) -> None:
        with pytest.raises(TypeError):
            mac.compute_hash_stream(b"bytes")  # type: ignore[arg-type]

    def test_verify(self, mac: HMACSHA384) -> None:
        mac.verify(b"data", reference(KEY, b"data"))

    def test_verify_mismatch(self, mac: HMACSHA384) -> None:
        with pytest.raises(MacVerificationError):
            mac.verify(b"data", b"\x00" * 48)

    def test_generate_uses_block_sized_key(self) -> None:
        with HMACSHA384.generate() as transform:
            assert len(transform.key) == 128

    def test_generate_keys_differ(self) -> None:
        with HMACSHA256.generate() as a, HMACSHA256.generate() as b:
            assert a.key != b.key

    def test_registry(self) -> None:
        assert set(HMAC_ALGORITHMS) == {"hmac-sha256", "hmac-sha384", "hmac-sha512"}
        with get_hmac_algorithm("hmac-sha384", KEY) as transform:
            assert isinstance(transform, HMACSHA384)

    def test_registry_unknown(self) -> None:
        with pytest.raises(KeyError):
            get_hmac_algorithm("hmac-md5", KEY)
