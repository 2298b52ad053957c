"""
skewreg Configuration Module

Handles the settings of the regression driver and of logging.
Supports environment variables, .env files, and programmatic configuration.

Configuration can be set via:
1. Environment variables (SKEWREG_MAX_EVALS, SKEWREG_LOG_LEVEL, etc.)
2. .env file in the working directory
3. Programmatic configuration via create_config()
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass
class FitConfig:
    """Configuration for a single skew-symmetric fit."""

    # Budget of objective/gradient evaluations for the minimizer
    max_evals: int = field(
        default_factory=lambda: int(os.getenv("SKEWREG_MAX_EVALS", "1000"))
    )

    # Line searches above this count flag a badly conditioned problem
    stall_threshold: int = field(
        default_factory=lambda: int(os.getenv("SKEWREG_STALL_THRESHOLD", "500"))
    )

    # Expected regime: many samples (rows), few state dimensions (columns)
    max_state_dim: int = field(
        default_factory=lambda: int(os.getenv("SKEWREG_MAX_STATE_DIM", "20"))
    )
    min_samples: int = field(
        default_factory=lambda: int(os.getenv("SKEWREG_MIN_SAMPLES", "20"))
    )

    # Relative improvement at which the minimizer stops (two steps in a row);
    # the default is double precision machine epsilon
    ftol: float = field(
        default_factory=lambda: float(os.getenv("SKEWREG_FTOL", "2.220446049250313e-16"))
    )

    def validate(self) -> None:
        """
        Validate configuration, raise if invalid.

        Raises:
            ValueError: If a budget or threshold is not positive
        """
        if self.max_evals <= 0:
            raise ValueError(f"max_evals must be positive, got {self.max_evals}")
        if self.stall_threshold <= 0:
            raise ValueError(
                f"stall_threshold must be positive, got {self.stall_threshold}"
            )
        if self.ftol < 0:
            raise ValueError(f"ftol must be non-negative, got {self.ftol}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_evals": self.max_evals,
            "stall_threshold": self.stall_threshold,
            "max_state_dim": self.max_state_dim,
            "min_samples": self.min_samples,
            "ftol": self.ftol,
        }


@dataclass
class SkewRegConfig:
    """
    Main configuration for skewreg.

    Example usage:
        # From environment variables
        config = SkewRegConfig()

        # Programmatic configuration
        config = create_config(max_evals=2000, log_level="DEBUG")
    """

    fit: FitConfig = field(default_factory=FitConfig)

    # Logging settings
    log_level: str = field(
        default_factory=lambda: os.getenv("SKEWREG_LOG_LEVEL", "INFO")
    )
    log_file: Optional[str] = field(
        default_factory=lambda: os.getenv("SKEWREG_LOG_FILE")
    )

    def validate(self) -> None:
        """Validate all configuration sections."""
        self.fit.validate()
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls) -> "SkewRegConfig":
        """Create configuration from environment variables."""
        return cls()

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SkewRegConfig":
        """
        Create configuration from a dictionary.

        Args:
            config_dict: Dictionary with configuration values

        Returns:
            SkewRegConfig instance
        """
        fit_cfg = config_dict.get("fit", {})

        return cls(
            fit=FitConfig(
                max_evals=fit_cfg.get("max_evals", 1000),
                stall_threshold=fit_cfg.get("stall_threshold", 500),
                max_state_dim=fit_cfg.get("max_state_dim", 20),
                min_samples=fit_cfg.get("min_samples", 20),
                ftol=fit_cfg.get("ftol", 2.220446049250313e-16),
            ),
            log_level=config_dict.get("log_level", "INFO"),
            log_file=config_dict.get("log_file"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration to dictionary."""
        return {
            "fit": self.fit.to_dict(),
            "log_level": self.log_level,
            "log_file": self.log_file,
        }


def get_default_config() -> SkewRegConfig:
    """Get the default configuration from environment."""
    return SkewRegConfig.from_env()


def create_config(
    max_evals: Optional[int] = None,
    stall_threshold: Optional[int] = None,
    log_level: Optional[str] = None,
    **kwargs
) -> SkewRegConfig:
    """
    Convenience function to create a configuration.

    Args:
        max_evals: Evaluation budget of the minimizer
        stall_threshold: Line-search count that triggers a stall warning
        log_level: Logging level name
        **kwargs: Additional configuration options

    Returns:
        Configured SkewRegConfig
    """
    config = SkewRegConfig()

    if max_evals is not None:
        config.fit.max_evals = max_evals
    if stall_threshold is not None:
        config.fit.stall_threshold = stall_threshold
    if log_level:
        config.log_level = log_level

    # Handle additional kwargs
    if "max_state_dim" in kwargs:
        config.fit.max_state_dim = kwargs["max_state_dim"]
    if "min_samples" in kwargs:
        config.fit.min_samples = kwargs["min_samples"]
    if "ftol" in kwargs:
        config.fit.ftol = kwargs["ftol"]
    if "log_file" in kwargs:
        config.log_file = kwargs["log_file"]

    return config


def configure_logging(config: Optional[SkewRegConfig] = None) -> None:
    """Apply the logging settings of a configuration to the root logger."""
    config = config or get_default_config()

    logging.basicConfig(
        level=config.log_level.upper(),
        filename=config.log_file,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
