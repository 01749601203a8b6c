"""Utility modules for the vcluster executor."""

from .resource_naming import mung_object_name
from .retry_config import (
    create_retry_policy,
    conflict_retry_policy,
    no_retry_policy,
    is_conflict_error,
    is_already_exists_error,
    is_not_found_error,
)

__all__ = [
    'mung_object_name',
    'create_retry_policy',
    'conflict_retry_policy',
    'no_retry_policy',
    'is_conflict_error',
    'is_already_exists_error',
    'is_not_found_error',
]
