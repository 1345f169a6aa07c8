"""Error definitions for the fragment extractor and patcher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises per-line patch errors so they can be counted and reported."""

    OVERSIZE = auto()
    ENCODING = auto()
    BOUNDS = auto()


class FragmentError(Exception):
    """Base exception for all custom errors."""


class InputReadError(FragmentError):
    """Raised when a source binary or table cannot be read."""


class OutputWriteError(FragmentError):
    """Raised when an output file cannot be written."""


class RemoteTableError(FragmentError):
    """Raised when the translation table cannot be fetched."""


class TableFormatError(FragmentError):
    """Raised when a translation table has malformed rows."""


class MissingContainerEntryError(FragmentError):
    """Raised when a patch group names a file absent from the target."""


class OversizeTranslationError(FragmentError):
    """Raised when an encoded translation does not fit its slot."""


class TranslationEncodingError(FragmentError):
    """Raised when a translation has no representation in the game encoding."""


class ConfigurationError(FragmentError):
    """Raised when configuration sources are unreadable or invalid."""


class PatchAborted(FragmentError):
    """Raised when the policy halts a patch run on a per-line error."""


class OverwriteRefusedError(FragmentError):
    """Raised when the output path would overwrite the input."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None
