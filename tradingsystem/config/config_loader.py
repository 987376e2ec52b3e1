"""
YAML configuration loader.

Loads subsystem configurations from YAML files and builds the configured
rules and SubSystem for a price series.
"""
import logging
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd
import yaml

from .config import EwmacConfig, SystemConfig, VolatilityDifferenceConfig
from ..combination.subsystem import SubSystem
from ..rules.base import Rule
from ..rules.ewmac import EWMAC
from ..rules.volatility_difference import VolatilityDifference
from ..series.price_series import PriceSeries
from ..shared.defaults import (
    BASE_SCALE, EWMAC_SHORT_HORIZON, EWMAC_LONG_HORIZON, VOLATILITY_LOOKBACK_WINDOW,
)
from ..shared.errors import ConfigError

logger = logging.getLogger(__name__)


def _parse_timestamp(value: Any, field_name: str) -> datetime:
    if value is None:
        raise ConfigError(f"Missing required field: reference_window.{field_name}")
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return pd.Timestamp(str(value)).to_pydatetime()
    except ValueError as e:
        raise ConfigError(f"Invalid timestamp for reference_window.{field_name}: {value!r}") from e


def _ewmac_from_dict(entry: Dict[str, Any]) -> EwmacConfig:
    return EwmacConfig(
        short_horizon=entry.get('short_horizon', EWMAC_SHORT_HORIZON),
        long_horizon=entry.get('long_horizon', EWMAC_LONG_HORIZON),
        variations=[_ewmac_from_dict(v) for v in entry.get('variations', []) or []],
    )


def _volatility_difference_from_dict(entry: Dict[str, Any]) -> VolatilityDifferenceConfig:
    return VolatilityDifferenceConfig(
        lookback_window=entry.get('lookback_window', VOLATILITY_LOOKBACK_WINDOW),
        variations=[_volatility_difference_from_dict(v) for v in entry.get('variations', []) or []],
    )


def load_config_from_yaml(yaml_path: Union[str, Path]) -> SystemConfig:
    """
    Load a subsystem configuration from a YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        SystemConfig object

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ConfigError: If YAML is empty or missing required fields
        ValueError: If a value fails validation
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    if not config_dict:
        raise ConfigError(f"Empty config file: {yaml_path}")
    if not isinstance(config_dict, dict):
        raise ConfigError(f"Config file must contain a mapping: {yaml_path}")

    window = config_dict.get('reference_window')
    if not window:
        raise ConfigError(f"Missing required field: reference_window in {yaml_path}")
    if not isinstance(window, dict):
        raise ConfigError(
            f"reference_window must be a mapping with start and end, got {window!r} in {yaml_path}"
        )

    rules = config_dict.get('rules', {}) or {}

    config = SystemConfig(
        name=config_dict.get('name', yaml_path.stem),
        start_of_reference_window=_parse_timestamp(window.get('start'), 'start'),
        end_of_reference_window=_parse_timestamp(window.get('end'), 'end'),
        base_scale=float(config_dict.get('base_scale', BASE_SCALE)),
        capital=float(config_dict.get('capital', 100_000.0)),
        ewmac=[_ewmac_from_dict(entry) for entry in rules.get('ewmac', []) or []],
        volatility_difference=[
            _volatility_difference_from_dict(entry)
            for entry in rules.get('volatility_difference', []) or []
        ],
    )
    logger.info(f"Loaded config {config.name} with {config.rule_count} rules from {yaml_path}")
    return config


def _rule_dict(entry: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty variation lists so saved files stay minimal."""
    if entry.get('variations'):
        return {'variations': [_rule_dict(v) for v in entry['variations']]}
    return {key: value for key, value in entry.items() if key != 'variations'}


def save_config_to_yaml(config: SystemConfig, yaml_path: Union[str, Path]) -> None:
    """
    Save a subsystem configuration to a YAML file.

    Args:
        config: SystemConfig to save
        yaml_path: Path where YAML file will be saved
    """
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        'name': config.name,
        'reference_window': {
            'start': config.start_of_reference_window.isoformat(),
            'end': config.end_of_reference_window.isoformat(),
        },
        'base_scale': config.base_scale,
        'capital': config.capital,
        'rules': {
            'ewmac': [_rule_dict(asdict(entry)) for entry in config.ewmac],
            'volatility_difference': [_rule_dict(asdict(entry)) for entry in config.volatility_difference],
        },
    }

    with open(yaml_path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def _build_ewmac(entry: EwmacConfig, config: SystemConfig, price_series: PriceSeries) -> EWMAC:
    variations = None
    if entry.variations:
        variations = [_build_ewmac(v, config, price_series) for v in entry.variations]
    return EWMAC(
        price_series,
        config.start_of_reference_window,
        config.end_of_reference_window,
        short_horizon=entry.short_horizon,
        long_horizon=entry.long_horizon,
        base_scale=config.base_scale,
        variations=variations,
    )


def _build_volatility_difference(
    entry: VolatilityDifferenceConfig,
    config: SystemConfig,
    price_series: PriceSeries,
) -> VolatilityDifference:
    variations = None
    if entry.variations:
        variations = [_build_volatility_difference(v, config, price_series) for v in entry.variations]
    return VolatilityDifference(
        price_series,
        config.start_of_reference_window,
        config.end_of_reference_window,
        lookback_window=entry.lookback_window,
        base_scale=config.base_scale,
        variations=variations,
    )


def build_rules(config: SystemConfig, price_series: PriceSeries) -> List[Rule]:
    """Instantiate the configured rules for price_series, EWMAC first."""
    rules: List[Rule] = [_build_ewmac(entry, config, price_series) for entry in config.ewmac]
    rules.extend(
        _build_volatility_difference(entry, config, price_series)
        for entry in config.volatility_difference
    )
    return rules


def build_subsystem(config: SystemConfig, price_series: PriceSeries) -> SubSystem:
    """Instantiate the configured rules and combine them into a SubSystem."""
    return SubSystem(price_series, build_rules(config, price_series), config.capital)
