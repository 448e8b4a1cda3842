"""Configuration validation utilities."""

from dataclasses import dataclass, fields
from typing import Any, Optional

from .defaults import (
    CandleShapeParams,
    FeedParams,
    MeanReversionParams,
    OscillatorParams,
    RegimeParams,
)
from .symbols import VOLATILITY_TIERS

_SECTIONS: dict[str, type] = {
    "oscillator": OscillatorParams,
    "regime": RegimeParams,
    "candle": CandleShapeParams,
    "reversion": MeanReversionParams,
    "feed": FeedParams,
}


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_probability(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not _is_number(value) or value < 0 or value > 1:
            errors.append(ValidationError(
                field=name,
                message="Must be a number between 0 and 1",
                value=value
            ))


def _check_positive(params: dict[str, Any], name: str, errors: list[ValidationError],
                    integer: bool = False) -> None:
    if name in params:
        value = params[name]
        valid = _is_int(value) if integer else _is_number(value)
        if not valid or value <= 0:
            errors.append(ValidationError(
                field=name,
                message="Must be a positive integer" if integer else "Must be a positive number",
                value=value
            ))


def _check_non_negative(params: dict[str, Any], name: str, errors: list[ValidationError]) -> None:
    if name in params:
        value = params[name]
        if not _is_number(value) or value < 0:
            errors.append(ValidationError(
                field=name,
                message="Must be a non-negative number",
                value=value
            ))


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_oscillator_params(
        params: dict[str, Any],
        max_oscillator_volatility: Optional[float] = None
    ) -> list[ValidationError]:
        """
        Validate oscillator parameters.

        The weighted sum of all oscillators times the largest volatility tier
        must stay below one, otherwise the price could reach zero.
        """
        errors: list[ValidationError] = []

        for name in ("trend_period", "swing_period", "noise_period",
                     "jitter_period", "micro_period", "rapid_period"):
            _check_positive(params, name, errors)

        weights = []
        for name in ("trend_weight", "swing_weight", "noise_weight",
                     "jitter_weight", "micro_weight", "rapid_weight"):
            _check_non_negative(params, name, errors)
            if _is_number(params.get(name)):
                weights.append(abs(params[name]))

        if max_oscillator_volatility is None:
            max_oscillator_volatility = max(t.oscillator for t in VOLATILITY_TIERS.values())

        max_move = sum(weights) * max_oscillator_volatility
        if max_move >= 1:
            errors.append(ValidationError(
                field="oscillator_weights",
                message="Weighted oscillator sum times the largest volatility tier must be < 1",
                value=max_move
            ))

        return errors

    @staticmethod
    def validate_regime_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate regime parameters."""
        errors: list[ValidationError] = []

        _check_positive(params, "min_duration", errors, integer=True)
        _check_positive(params, "max_duration", errors, integer=True)
        if (_is_int(params.get("min_duration")) and _is_int(params.get("max_duration"))
                and params["max_duration"] < params["min_duration"]):
            errors.append(ValidationError(
                field="max_duration",
                message="Must be greater than or equal to min_duration",
                value=params["max_duration"]
            ))

        thresholds = ("ranging_threshold", "uptrend_threshold",
                      "downtrend_threshold", "volatile_threshold")
        for name in thresholds:
            _check_probability(params, name, errors)
        values = [params[name] for name in thresholds if _is_number(params.get(name))]
        if len(values) == len(thresholds) and values != sorted(values):
            errors.append(ValidationError(
                field="regime_thresholds",
                message="Roll thresholds must be non-decreasing",
                value=values
            ))

        for name in ("uptrend_bias", "downtrend_bias",
                     "consolidation_above_bias", "consolidation_below_bias"):
            _check_probability(params, name, errors)

        return errors

    @staticmethod
    def validate_candle_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate candle shape parameters."""
        errors: list[ValidationError] = []

        for name in ("body_min", "volatile_body_min", "body_jitter_min"):
            _check_positive(params, name, errors)
        for name in ("body_span", "volatile_body_span", "body_jitter_span", "wick_base_ratio",
                     "wick_multiplier", "volatile_wick_multiplier", "engulfing_extension",
                     "doji_body_ratio", "doji_wick_ratio"):
            _check_non_negative(params, name, errors)
        for name in ("engulfing_probability", "doji_probability", "doji_threshold"):
            _check_probability(params, name, errors)

        return errors

    @staticmethod
    def validate_reversion_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate mean reversion parameters."""
        errors: list[ValidationError] = []

        _check_positive(params, "threshold_pct", errors)
        _check_positive(params, "anchor_span", errors, integer=True)
        for name in ("ranging_pull", "trending_pull", "fair_value_pull"):
            _check_probability(params, name, errors)

        return errors

    @staticmethod
    def validate_feed_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate feed driver parameters."""
        errors: list[ValidationError] = []

        for name in ("tick_interval_ms", "tick_bucket_ms", "history_count", "default_interval"):
            _check_positive(params, name, errors, integer=True)
        _check_non_negative(params, "tick_size_ratio", errors)

        return errors

    @staticmethod
    def validate_unknown_fields(config: dict[str, Any]) -> list[ValidationError]:
        """Report sections and fields that do not exist in the defaults."""
        errors: list[ValidationError] = []

        for section, params in config.items():
            section_type = _SECTIONS.get(section)
            if section_type is None:
                errors.append(ValidationError(
                    field=section,
                    message="Unknown configuration section",
                    value=params
                ))
                continue
            if not isinstance(params, dict):
                errors.append(ValidationError(
                    field=section,
                    message="Section must be a mapping",
                    value=params
                ))
                continue
            known = {f.name for f in fields(section_type)}
            for name in params:
                if name not in known:
                    errors.append(ValidationError(
                        field=f"{section}.{name}",
                        message="Unknown configuration field",
                        value=params[name]
                    ))

        return errors

    @staticmethod
    def validate_config(
        config: dict[str, Any],
        max_oscillator_volatility: Optional[float] = None
    ) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = ConfigValidator.validate_unknown_fields(config)
        if errors:
            return errors

        if "oscillator" in config:
            errors.extend(ConfigValidator.validate_oscillator_params(
                config["oscillator"], max_oscillator_volatility))

        if "regime" in config:
            errors.extend(ConfigValidator.validate_regime_params(config["regime"]))

        if "candle" in config:
            errors.extend(ConfigValidator.validate_candle_params(config["candle"]))

        if "reversion" in config:
            errors.extend(ConfigValidator.validate_reversion_params(config["reversion"]))

        if "feed" in config:
            errors.extend(ConfigValidator.validate_feed_params(config["feed"]))

        return errors
