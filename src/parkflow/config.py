# File: src/parkflow/config.py
"""
Configuration for the parking facility.

Settings are read from a YAML file into pydantic models. The path comes from
the ``--config`` CLI flag or the ``PARKFLOW_CONFIG`` environment variable;
without a file the built-in single-floor facility is used.

Example::

    facility:
      name: City Lot
      floors:
        - {number: 1, small: 10, medium: 20, large: 4}
        - {number: 2, small: 5, medium: 30, large: 0}
    rates: {SMALL: 10, MEDIUM: 50, LARGE: 100}
    currency: USD
    logging:
      level: INFO
      file: logs/parkflow.log
"""

from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging
import os
import sys

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain.models import SpotSize

CONFIG_ENV_VAR = "PARKFLOW_CONFIG"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


# ============================================================================
# SETTINGS MODELS
# ============================================================================

class FloorConfig(BaseModel):
    """Spot counts of one floor"""
    number: int = Field(ge=0)
    small: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    large: int = Field(default=0, ge=0)


class FacilityConfig(BaseModel):
    name: str = Field(default="City Lot", min_length=1)
    floors: List[FloorConfig] = Field(
        default_factory=lambda: [FloorConfig(number=1, small=1, medium=1, large=1)]
    )

    @field_validator('floors')
    @classmethod
    def validate_floors(cls, floors: List[FloorConfig]) -> List[FloorConfig]:
        if not floors:
            raise ValueError("At least one floor is required")
        numbers = [floor.number for floor in floors]
        if len(set(numbers)) != len(numbers):
            raise ValueError(f"Duplicate floor numbers: {numbers}")
        return floors


class RatesConfig(BaseModel):
    """Hourly base rate per spot size"""
    model_config = ConfigDict(populate_by_name=True)

    small: Decimal = Field(default=Decimal('10'), ge=0, alias="SMALL")
    medium: Decimal = Field(default=Decimal('50'), ge=0, alias="MEDIUM")
    large: Decimal = Field(default=Decimal('100'), ge=0, alias="LARGE")

    def as_dict(self) -> Dict[SpotSize, Decimal]:
        return {
            SpotSize.SMALL: self.small,
            SpotSize.MEDIUM: self.medium,
            SpotSize.LARGE: self.large,
        }


class LoggingConfig(BaseModel):
    level: str = "INFO"
    file: Optional[str] = None

    @field_validator('level')
    @classmethod
    def validate_level(cls, level: str) -> str:
        level = level.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {level}")
        return level


class AppConfig(BaseModel):
    """Root of the configuration file"""
    facility: FacilityConfig = Field(default_factory=FacilityConfig)
    rates: RatesConfig = Field(default_factory=RatesConfig)
    currency: str = Field(default="USD", pattern="^[A-Z]{3}$")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode='before')
    @classmethod
    def drop_empty_sections(cls, data):
        # A YAML section with no body loads as None
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# ============================================================================
# LOADING
# ============================================================================

def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    Load configuration from YAML
    Falls back to PARKFLOW_CONFIG, then to built-in defaults
    """
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return AppConfig()

    with open(path, 'r', encoding='utf-8') as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    return AppConfig.model_validate(data)


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Setup application logging configuration"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
    return logging.getLogger("parkflow")
