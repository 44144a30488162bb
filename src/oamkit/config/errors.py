"""Errors raised while reading controller settings from the environment."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """A controller setting is present but cannot be used.

    ``setting`` names the environment variable at fault, when there is one.
    """

    def __init__(self, message: str, *, setting: str | None = None) -> None:
        super().__init__(message)
        self.setting = setting


class MissingConfigurationError(ConfigurationError):
    """Settings the selected object store or loop needs are absent or blank."""

    def __init__(self, settings: Iterable[str]) -> None:
        self.settings = tuple(sorted(settings))
        super().__init__(
            f"Missing configuration for: {', '.join(self.settings)}",
            setting=self.settings[0] if self.settings else None,
        )
