"""Logging configuration types and loading utilities."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
import os

@dataclass
class FileConfig:
    """File logging configuration."""
    enabled: bool = False
    path: str = 'logs/courtsched.log'
    max_size_mb: int = 50
    backup_count: int = 7
    format: str = 'json'
    include_timestamp: bool = True

@dataclass
class ConsoleConfig:
    """Console logging configuration."""
    enabled: bool = True
    format: str = 'text'
    include_timestamp: bool = True
    color: bool = True

@dataclass
class SensitiveDataConfig:
    """Sensitive data masking configuration."""
    enabled: bool = True
    global_fields: List[str] = field(default_factory=lambda: ['payment_id', 'payment_reference'])
    mask_pattern: str = '***MASKED***'

@dataclass
class ErrorAggregationConfig:
    """Error aggregation configuration."""
    enabled: bool = True
    report_interval: int = 3600
    error_threshold: int = 5
    time_threshold: int = 300
    categorize_by: List[str] = field(default_factory=lambda: ['service', 'message'])

@dataclass
class LoggingConfig:
    """Complete logging configuration."""
    default_level: str = 'WARNING'
    verbose_level: str = 'DEBUG'
    file: FileConfig = field(default_factory=FileConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    libraries: Dict[str, str] = field(default_factory=dict)
    sensitive_data: SensitiveDataConfig = field(default_factory=SensitiveDataConfig)
    error_aggregation: ErrorAggregationConfig = field(default_factory=ErrorAggregationConfig)

def load_logging_config(config_path: Optional[Union[str, Path]] = None) -> LoggingConfig:
    """Load logging configuration from YAML file."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), 'logging_config.yaml')

    if not os.path.exists(config_path):
        return LoggingConfig()

    with open(config_path, 'r', encoding='utf-8') as f:
        config_dict = yaml.safe_load(f) or {}

    libraries = config_dict.get('libraries', {
        'yaml': 'WARNING',
        'icalendar': 'WARNING'
    })

    return LoggingConfig(
        default_level=config_dict.get('default_level', 'WARNING'),
        verbose_level=config_dict.get('verbose_level', 'DEBUG'),
        file=FileConfig(**config_dict.get('file', {})),
        console=ConsoleConfig(**config_dict.get('console', {})),
        libraries=libraries,
        sensitive_data=SensitiveDataConfig(**config_dict.get('sensitive_data', {})),
        error_aggregation=ErrorAggregationConfig(**config_dict.get('error_aggregation', {}))
    )
