"""Тесты для core/sizes.py."""

from __future__ import annotations

import pytest

from src.security.cng.core.sizes import KeySizes, describe_sizes, is_legal_size


class TestKeySizes:
    def test_stepped_range(self) -> None:
        aes = KeySizes(128, 256, 64)
        assert aes.sizes() == (128, 192, 256)
        assert aes.contains(192)
        assert not aes.contains(160)
        assert not aes.contains(64)
        assert not aes.contains(320)

    def test_single_size(self) -> None:
        block = KeySizes(128, 128, 0)
        assert block.sizes() == (128,)
        assert block.contains(128)
        assert not block.contains(64)

    @pytest.mark.parametrize(
        "args",
        [(0, 128, 8), (256, 128, 8), (128, 256, -8), (128, 256, 0)],
    )
    def test_invalid_ranges(self, args: tuple) -> None:
        with pytest.raises(ValueError):
            KeySizes(*args)

    def test_frozen(self) -> None:
        sizes = KeySizes(128, 128, 0)
        with pytest.raises(AttributeError):
            sizes.min_size = 64  # type: ignore[misc]


def test_is_legal_size_any_range() -> None:
    legal = (KeySizes(64, 64, 0), KeySizes(128, 256, 64))
    assert is_legal_size(64, legal)
    assert is_legal_size(256, legal)
    assert not is_legal_size(96, legal)


def test_describe_sizes() -> None:
    assert describe_sizes((KeySizes(128, 256, 64), KeySizes(128, 128, 0))) == "128, 192, 256"
