"""
Тесты для модуля config.py.

Покрытие:
- Provider: валидация имени, константа PRIMITIVE_PROVIDER
- SymmetricConfig: значения по умолчанию, валидация, from_mapping()
- Интеграция с load_config() пакета
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src import load_config
from src.security.cng.config import (
    DEFAULT_SYMMETRIC_CONFIG,
    PRIMITIVE_PROVIDER,
    Provider,
    SymmetricConfig,
)
from src.security.cng.core.modes import ChainingMode, PaddingMode


class TestProvider:
    def test_primitive_provider_name(self) -> None:
        assert PRIMITIVE_PROVIDER.name == "Microsoft Primitive Provider"
        assert str(PRIMITIVE_PROVIDER) == "Microsoft Primitive Provider"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name_rejected(self, name: str) -> None:
        with pytest.raises(ValueError):
            Provider(name)

    def test_equality_by_name(self) -> None:
        assert Provider("Microsoft Primitive Provider") == PRIMITIVE_PROVIDER


class TestSymmetricConfig:
    def test_defaults(self) -> None:
        assert DEFAULT_SYMMETRIC_CONFIG.mode is ChainingMode.CBC
        assert DEFAULT_SYMMETRIC_CONFIG.padding is PaddingMode.PKCS7
        assert DEFAULT_SYMMETRIC_CONFIG.provider == PRIMITIVE_PROVIDER

    def test_rejects_plain_strings(self) -> None:
        with pytest.raises(ValueError):
            SymmetricConfig(mode="cbc")  # type: ignore[arg-type]

    def test_from_mapping(self) -> None:
        cfg = SymmetricConfig.from_mapping(
            {"default_mode": "CTR", "default_padding": "iso_10126", "default_provider": "Other"}
        )
        assert cfg.mode is ChainingMode.CTR
        assert cfg.padding is PaddingMode.ISO_10126
        assert cfg.provider == Provider("Other")

    def test_from_mapping_empty_keeps_defaults(self) -> None:
        assert SymmetricConfig.from_mapping({}) == DEFAULT_SYMMETRIC_CONFIG

    def test_from_mapping_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            SymmetricConfig.from_mapping({"default_mode": "xts"})


class TestLoadConfig:
    """load_config() → SymmetricConfig.from_mapping()."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "absent.json")
        assert SymmetricConfig.from_mapping(config) == DEFAULT_SYMMETRIC_CONFIG

    def test_user_overrides(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"default_mode": "ecb", "default_padding": "none"}))

        cfg = SymmetricConfig.from_mapping(load_config(path))

        assert cfg.mode is ChainingMode.ECB
        assert cfg.padding is PaddingMode.NONE

    def test_invalid_json_falls_back(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_config(path)["default_mode"] == "cbc"

    def test_non_object_falls_back(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text("[1, 2, 3]")
        assert load_config(path)["default_padding"] == "pkcs7"
