#!/usr/bin/env python3

"""Configuration for a single layout analysis call."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from ...errors import ConfigurationError
from .defaults import get_config

SUPPORTED_ALIGNMENTS = (4, 8)


@dataclass
class AnalysisConfig:
    """Configuration read fresh by every analysis call.

    Attributes:
        target_alignment: Pointer/long width of the target model (4 or 8)
        custom_type_sizes: Extra or overriding type sizes in bytes
        max_passes: Upper bound on fixed-point resolution passes
    """

    target_alignment: int = 8
    custom_type_sizes: dict[str, int] = field(default_factory=dict)
    max_passes: int = 3

    @classmethod
    def from_env(cls, env_path: Path | None = None) -> "AnalysisConfig":
        """
        Load configuration from environment variables or a .env file.

        Args:
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            AnalysisConfig object

        Raises:
            ConfigurationError: If CSTRUCT_CUSTOM_TYPE_SIZES is not a JSON object
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"

        if env_path.exists():
            load_dotenv(env_path)

        settings = get_config()
        raw_sizes = settings["CUSTOM_TYPE_SIZES"]
        try:
            custom_type_sizes = json.loads(raw_sizes) if raw_sizes else {}
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"CSTRUCT_CUSTOM_TYPE_SIZES must be a JSON object: {e}"
            ) from e
        if not isinstance(custom_type_sizes, dict):
            raise ConfigurationError("CSTRUCT_CUSTOM_TYPE_SIZES must be a JSON object")

        return cls(
            target_alignment=settings["TARGET_ALIGNMENT"],
            custom_type_sizes=custom_type_sizes,
            max_passes=settings["MAX_PASSES"],
        )

    @classmethod
    def from_args(
        cls,
        target_alignment: int | None = None,
        custom_type_sizes: dict[str, int] | None = None,
        max_passes: int | None = None,
    ) -> "AnalysisConfig":
        """
        Create configuration from explicit arguments, falling back to environment.

        Custom sizes given here are merged over those from the environment.

        Args:
            target_alignment: Target alignment (overrides env)
            custom_type_sizes: Custom type sizes (merged over env)
            max_passes: Resolution pass limit (overrides env)

        Returns:
            AnalysisConfig object
        """
        config = cls.from_env()

        if target_alignment is not None:
            config.target_alignment = target_alignment
        if custom_type_sizes:
            config.custom_type_sizes = {**config.custom_type_sizes, **custom_type_sizes}
        if max_passes is not None:
            config.max_passes = max_passes

        return config

    def validate(self) -> None:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.target_alignment not in SUPPORTED_ALIGNMENTS:
            raise ConfigurationError(
                f"target_alignment must be one of {SUPPORTED_ALIGNMENTS}, "
                f"got {self.target_alignment!r}"
            )

        for type_name, size in self.custom_type_sizes.items():
            if not isinstance(type_name, str) or not type_name.strip():
                raise ConfigurationError(f"custom type name must be a non-empty string: {type_name!r}")
            if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
                raise ConfigurationError(
                    f"custom size for '{type_name}' must be a positive integer, got {size!r}"
                )

        if isinstance(self.max_passes, bool) or not isinstance(self.max_passes, int) or self.max_passes < 1:
            raise ConfigurationError(f"max_passes must be at least 1, got {self.max_passes!r}")
