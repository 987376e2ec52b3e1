"""
Subsystem configuration.

Dataclass configs validated at construction, plus YAML loading, saving
and building of rules and subsystems from a config.
"""
from .config import EwmacConfig, VolatilityDifferenceConfig, SystemConfig
from .config_loader import (
    load_config_from_yaml,
    save_config_to_yaml,
    build_rules,
    build_subsystem,
)

__all__ = [
    'EwmacConfig',
    'VolatilityDifferenceConfig',
    'SystemConfig',
    'load_config_from_yaml',
    'save_config_to_yaml',
    'build_rules',
    'build_subsystem',
]
