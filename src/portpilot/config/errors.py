from __future__ import annotations

"""Exception types for configuration handling."""


class ConfigurationError(RuntimeError):
    """Raised when configuration values are missing or malformed."""

    @classmethod
    def invalid_value(cls, param_name: str, value, reason: str = "") -> "ConfigurationError":
        """Create error for invalid value."""
        msg = f"Invalid value for {param_name}: {value!r}"
        if reason:
            msg += f". {reason}"
        return cls(msg)


class UnsupportedPlatformError(ConfigurationError):
    """Raised when no platform variant exists for the host operating system."""

    def __init__(self, platform_name: str) -> None:
        super().__init__(f"Unsupported platform: {platform_name}")
        self.platform_name = platform_name


__all__ = ["ConfigurationError", "UnsupportedPlatformError"]
