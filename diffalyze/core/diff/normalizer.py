"""
Line normalization for comparison.

Turns a raw line into a comparison key. Keys are only used for equality
checks; displayed content is always the untransformed line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional


logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class CompareOptions:
    """Options for text comparison."""
    ignore_spaces_case: bool = False  # Trim, collapse whitespace, lowercase
    ignore_blank: bool = False        # Whitespace-only lines compare as empty
    regex: Optional[str] = None       # Pattern stripped from every line

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'CompareOptions':
        """
        Build options from a mapping.

        Accepts snake_case keys as well as the camelCase keys used by
        front ends (ignoreSpacesCase, ignoreBlank).
        """
        if not data:
            return cls()

        def pick(snake: str, camel: str, default: Any) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        regex = pick("regex", "regex", None)
        return cls(
            ignore_spaces_case=bool(pick("ignore_spaces_case", "ignoreSpacesCase", False)),
            ignore_blank=bool(pick("ignore_blank", "ignoreBlank", False)),
            regex=regex if isinstance(regex, str) and regex.strip() else None,
        )

    @property
    def has_pattern(self) -> bool:
        return bool(self.regex and self.regex.strip())

    def without_pattern(self) -> 'CompareOptions':
        return replace(self, regex=None)


class LineNormalizer:
    """
    Callable producing comparison keys.

    Transformations are applied in a fixed order:
    1. strip every regex match, then trailing whitespace
    2. trim, collapse whitespace runs and lowercase (ignore_spaces_case)
    3. whitespace-only result becomes "" (ignore_blank)

    Patterns must be validated by the caller (see regex_guard). A pattern
    that still fails to compile is ignored here.
    """

    def __init__(self, options: Optional[CompareOptions] = None):
        self.options = options or CompareOptions()
        self._pattern = self._compile(self.options.regex)

    @staticmethod
    def _compile(pattern: Optional[str]) -> Optional[re.Pattern[str]]:
        if not pattern or not pattern.strip():
            return None
        try:
            return re.compile(pattern)
        except re.error as e:
            logger.warning("Ignoring uncompilable pattern %r: %s", pattern, e)
            return None

    @property
    def is_identity(self) -> bool:
        """True if keys are always equal to the raw lines."""
        return (self._pattern is None
                and not self.options.ignore_spaces_case
                and not self.options.ignore_blank)

    def __call__(self, line: str) -> str:
        result = line if isinstance(line, str) else ""

        if self._pattern is not None:
            result = self._pattern.sub("", result).rstrip()

        if self.options.ignore_spaces_case:
            result = _WHITESPACE_RUN.sub(" ", result.strip()).lower()

        if self.options.ignore_blank and not result.strip():
            result = ""

        return result

    def normalize_all(self, lines: list[str]) -> list[str]:
        return [self(line) for line in lines]
