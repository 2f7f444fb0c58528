# -*- coding: utf-8 -*-
"""
RU: Конфигурация CNG-подсистемы: провайдер алгоритмов и параметры
симметричных адаптеров по умолчанию.
EN: CNG subsystem configuration: algorithm provider and symmetric adapter
defaults. The default provider is an explicit constant passed at
construction time, never mutable process-wide state.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Mapping

from src.security.cng.core.modes import ChainingMode, PaddingMode


@dataclass(frozen=True)
class Provider:
    """
    Algorithm provider identifier.

    Attributes:
        name: Provider name as understood by the engine.

    Examples:
        >>> Provider("Microsoft Primitive Provider").name
        'Microsoft Primitive Provider'
    """

    name: str

    def __post_init__(self) -> None:
        """Validate name."""
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Provider name must be a non-empty string")

    def __str__(self) -> str:
        return self.name


# Documented default: the primitive (software) provider.
PRIMITIVE_PROVIDER: Final[Provider] = Provider("Microsoft Primitive Provider")


@dataclass(frozen=True)
class SymmetricConfig:
    """
    Defaults applied to a freshly constructed symmetric adapter.

    Attributes:
        mode: Chaining mode (default CBC).
        padding: Padding scheme (default PKCS7).
        provider: Algorithm provider.

    Examples:
        >>> cfg = SymmetricConfig.from_mapping({"default_mode": "ctr"})
        >>> cfg.mode
        <ChainingMode.CTR: 'ctr'>
    """

    mode: ChainingMode = ChainingMode.CBC
    padding: PaddingMode = PaddingMode.PKCS7
    provider: Provider = field(default=PRIMITIVE_PROVIDER)

    def __post_init__(self) -> None:
        """Validate parameters."""
        if not isinstance(self.mode, ChainingMode):
            raise ValueError(f"mode must be ChainingMode, got {type(self.mode).__name__}")
        if not isinstance(self.padding, PaddingMode):
            raise ValueError(
                f"padding must be PaddingMode, got {type(self.padding).__name__}"
            )
        if not isinstance(self.provider, Provider):
            raise ValueError(
                f"provider must be Provider, got {type(self.provider).__name__}"
            )

    @staticmethod
    def from_mapping(values: Mapping[str, Any]) -> "SymmetricConfig":
        """
        Build configuration from a plain mapping (e.g. parsed config.json).

        Recognized keys: ``default_mode``, ``default_padding``,
        ``default_provider``. Missing keys keep their defaults.

        Raises:
            ValueError: on unknown mode/padding names or empty provider.
        """
        mode = ChainingMode.from_str(str(values.get("default_mode", ChainingMode.CBC.value)))
        padding = PaddingMode.from_str(
            str(values.get("default_padding", PaddingMode.PKCS7.value))
        )
        provider_name = values.get("default_provider")
        provider = Provider(provider_name) if provider_name else PRIMITIVE_PROVIDER
        return SymmetricConfig(mode=mode, padding=padding, provider=provider)


DEFAULT_SYMMETRIC_CONFIG: Final[SymmetricConfig] = SymmetricConfig()


__all__ = [
    "Provider",
    "PRIMITIVE_PROVIDER",
    "SymmetricConfig",
    "DEFAULT_SYMMETRIC_CONFIG",
]
