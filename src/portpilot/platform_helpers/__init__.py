"""Platform variants and the text parsers they rely on."""

from .posix import PosixPlatform
from .windows import WindowsPlatform

__all__ = [
    "PosixPlatform",
    "WindowsPlatform",
]
