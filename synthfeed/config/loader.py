"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    CandleShapeParams,
    DefaultConfig,
    FeedParams,
    MeanReversionParams,
    OscillatorParams,
    RegimeParams,
    get_default_config,
)
from .symbols import DEFAULT_SYMBOL_TABLE, SymbolProfile, SymbolTable, classify_tier
from .validation import ConfigValidator

SECTION_TYPES: dict[str, type] = {
    "oscillator": OscillatorParams,
    "regime": RegimeParams,
    "candle": CandleShapeParams,
    "reversion": MeanReversionParams,
    "feed": FeedParams,
}

PROFILE_KEYS = ("base_price", "tier", "category", "payout", "payout_5min")


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def _load_symbols_file(self) -> dict[str, Any]:
        symbols_file = self.config_dir / "symbols.yaml"

        if not symbols_file.exists():
            return {}

        with open(symbols_file) as f:
            symbols_config = yaml.safe_load(f) or {}

        return symbols_config.get("symbols", {}) or {}  # type: ignore[no-any-return]

    def load_symbol_config(self, symbol: str) -> dict[str, Any]:
        """Load symbol-specific engine parameter overrides."""
        entry = self._load_symbols_file().get(symbol, {}) or {}
        return {key: value for key, value in entry.items() if key in SECTION_TYPES}

    def load_symbol_profiles(self) -> list[SymbolProfile]:
        """Symbol profiles declared or overridden in symbols.yaml."""
        profiles = []
        for symbol, entry in self._load_symbols_file().items():
            entry = entry or {}
            profile_fields = {key: entry[key] for key in PROFILE_KEYS if key in entry}
            if "base_price" not in profile_fields:
                if not profile_fields:
                    continue
                # Partial override of a built-in symbol
                current = DEFAULT_SYMBOL_TABLE.resolve(symbol)
                profile_fields = {
                    "base_price": current.base_price,
                    "tier": current.tier,
                    "category": current.category,
                    "payout": current.payout,
                    "payout_5min": current.payout_5min,
                    **profile_fields,
                }
            profile_fields.setdefault("tier", classify_tier(symbol))
            profiles.append(SymbolProfile(symbol=symbol, **profile_fields))
        return profiles

    def build_symbol_table(self) -> SymbolTable:
        """Default symbol table extended with symbols.yaml entries."""
        return DEFAULT_SYMBOL_TABLE.with_profiles(self.load_symbol_profiles())

    def merge_config(
        self,
        symbol: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Caller overrides (highest priority)
        2. Symbol-specific overrides
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        if symbol is not None:
            config = self._deep_merge(config, self.load_symbol_config(symbol))

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def build_engine_config(
        self,
        symbol: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None,
        max_oscillator_volatility: Optional[float] = None,
    ) -> DefaultConfig:
        """
        Merged configuration as typed dataclasses.

        Raises:
            ConfigurationError: If the merged configuration fails validation
        """
        merged = self.merge_config(symbol, overrides)
        errors = ConfigValidator.validate_config(merged, max_oscillator_volatility)
        if errors:
            messages = [f"{err.field}: {err.message} (got: {err.value})" for err in errors]
            raise ConfigurationError(
                f"Invalid engine configuration: {'; '.join(messages)}",
                errors=errors,
                context={"symbol": symbol},
            )

        return DefaultConfig(**{
            section: section_type(**merged[section])
            for section, section_type in SECTION_TYPES.items()
        })

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field in fields(obj):
                value = getattr(obj, field.name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field.name] = self._dataclass_to_dict(value)
                else:
                    result[field.name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
