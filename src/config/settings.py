"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration via environment variables.
All settings use PREVHS_ prefix (e.g., PREVHS_HEADER_VALIDATION=warn).

Settings can also be loaded from a .env file in the project root.
"""

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.macros import EngineOptions, HeaderValidation


class AppSettings(BaseSettings):
    """
    Application configuration via environment variables.

    Environment variables use PREVHS_ prefix.

    Examples:
        PREVHS_WARN_ON_MACRO_COLLISION=false
        PREVHS_HEADER_VALIDATION=error
        PREVHS_MAX_EXPANSION_STEPS=50000
    """

    model_config = SettingsConfigDict(
        env_prefix="PREVHS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Engine configuration
    warn_on_macro_collision: bool = Field(
        default=True,
        description="Log a warning when a macro name is registered more than once",
    )

    header_validation: HeaderValidation = Field(
        default="off",
        description="Strictness for header anomalies: off, warn or error",
    )

    max_expansion_steps: int = Field(
        default=10000,
        gt=0,
        description="Token considerations allowed while expanding one document",
    )

    max_expansion_depth: int = Field(
        default=32,
        gt=0,
        description="Nested macro calls allowed per token",
    )

    # File naming
    input_suffix: str = Field(
        default=".pre",
        description="Suffix stripped from the input file name to derive the output name",
    )

    def engineOptions_make(self, **overrides: Any) -> EngineOptions:
        """
        Build engine options from these settings.

        Args:
            **overrides: Values that take precedence (None values are ignored)

        Returns:
            Validated EngineOptions

        Example:
            >>> settings = AppSettings()
            >>> settings.engineOptions_make(header_validation="warn").header_validation
            'warn'
        """
        values = {
            "warn_on_macro_collision": self.warn_on_macro_collision,
            "header_validation": self.header_validation,
            "max_expansion_steps": self.max_expansion_steps,
            "max_expansion_depth": self.max_expansion_depth,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return EngineOptions(**values)

    def outputName_make(self, input_name: str) -> str:
        """
        Derive the output file name from an input file name.

        Example:
            >>> AppSettings().outputName_make("demo.tape.pre")
            'demo.tape'
            >>> AppSettings().outputName_make("demo")
            'demo.tape'
        """
        if self.input_suffix and input_name.endswith(self.input_suffix):
            return input_name[: -len(self.input_suffix)]
        return f"{input_name}.tape"


# Singleton instance - import this in your code
appsettings = AppSettings()
