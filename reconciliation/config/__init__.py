"""
Configuration module for the reconciliation layer.
"""
from .settings import (
    ReconciliationConfig,
    get_config,
    load_config,
    reload_config
)

__all__ = [
    'ReconciliationConfig',
    'get_config',
    'load_config',
    'reload_config'
]
