"""
Merge module for interactive two-way merging.
"""

from diffalyze.core.merge.session import (
    DEFAULT_HISTORY_LIMIT,
    MergeSession,
    prepare_merge,
)

__all__ = [
    'DEFAULT_HISTORY_LIMIT',
    'MergeSession',
    'prepare_merge',
]
