"""
Diff module for line comparison.

Provides:
- Line normalization and strip pattern validation
- The Myers shortest edit script
- Moved line detection
- Classification into aligned rows, plus a positional fallback
- Change block location
"""

from diffalyze.core.diff.blocks import (
    block_at,
    compute_blocks,
    next_block,
    previous_block,
)
from diffalyze.core.diff.fallback import positional_diff
from diffalyze.core.diff.moves import detect_moved_lines, move_threshold
from diffalyze.core.diff.myers import SearchCancelled, edit_distance, myers_diff
from diffalyze.core.diff.normalizer import CompareOptions, LineNormalizer
from diffalyze.core.diff.regex_guard import PatternCheck, PatternStatus, check_pattern
from diffalyze.core.diff.text_diff import (
    SideBySideFormatter,
    TextDiffEngine,
    classify,
    compute_diff,
    group_operations,
)

__all__ = [
    # Normalization
    'CompareOptions',
    'LineNormalizer',
    'PatternCheck',
    'PatternStatus',
    'check_pattern',
    # Engine
    'SearchCancelled',
    'edit_distance',
    'myers_diff',
    'detect_moved_lines',
    'move_threshold',
    'TextDiffEngine',
    'classify',
    'compute_diff',
    'group_operations',
    'positional_diff',
    'SideBySideFormatter',
    # Blocks
    'compute_blocks',
    'block_at',
    'next_block',
    'previous_block',
]
