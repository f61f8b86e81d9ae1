"""
Configuration management for swaption calibration.

Supports loading from:
- Environment variables
- YAML/JSON config files
- Command-line arguments
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


@dataclass
class CalibrationConfig:
    """Hull-White calibration configuration."""
    # Starting point and search box for (alpha, sigma)
    initial_guess: tuple = (0.1, 0.1)
    alpha_bounds: tuple = (0.0, 1.0)
    sigma_bounds: tuple = (1e-6, 0.5)

    # Global stage (differential evolution)
    de_population_size: int = 20
    de_max_iterations: int = 5
    de_seed: Optional[int] = 42
    de_tolerance: float = 0.01

    # Local stage (L-BFGS-B)
    local_epsilon: float = 1e-7
    local_h: float = 1e-7
    local_max_iterations: int = 1000
    accurate_numerical_derivatives: bool = True

    # Market conventions
    default_tenor_step: float = 1.0
    vol_type: str = "lognormal"  # lognormal, normal

    # Skip stage 1 and refine straight from initial_guess when False
    global_search: bool = True

    verbosity: int = 1

    def __post_init__(self):
        """Normalize sequences read from JSON/YAML."""
        self.initial_guess = tuple(self.initial_guess)
        self.alpha_bounds = tuple(self.alpha_bounds)
        self.sigma_bounds = tuple(self.sigma_bounds)
        if self.vol_type not in ("lognormal", "normal"):
            raise ValueError(f"Unknown vol_type: {self.vol_type}")
        if self.default_tenor_step <= 0:
            raise ValueError("default_tenor_step must be positive")

    @property
    def bounds(self) -> tuple:
        """Search box as ((alpha_lo, alpha_hi), (sigma_lo, sigma_hi))."""
        return (self.alpha_bounds, self.sigma_bounds)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "initial_guess": list(self.initial_guess),
            "alpha_bounds": list(self.alpha_bounds),
            "sigma_bounds": list(self.sigma_bounds),
            "de_population_size": self.de_population_size,
            "de_max_iterations": self.de_max_iterations,
            "de_seed": self.de_seed,
            "de_tolerance": self.de_tolerance,
            "local_epsilon": self.local_epsilon,
            "local_h": self.local_h,
            "local_max_iterations": self.local_max_iterations,
            "accurate_numerical_derivatives": self.accurate_numerical_derivatives,
            "default_tenor_step": self.default_tenor_step,
            "vol_type": self.vol_type,
            "global_search": self.global_search,
            "verbosity": self.verbosity,
        }


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10_000_000  # 10MB
    backup_count: int = 5


@dataclass
class Config:
    """Main configuration container."""
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    debug: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        config = cls()

        if "calibration" in data:
            config.calibration = CalibrationConfig(**data["calibration"])
        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])
        if "debug" in data:
            config.debug = data["debug"]

        return config

    @classmethod
    def from_file(cls, path: str) -> "Config":
        """Load config from JSON or YAML file."""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            if path.suffix in (".yaml", ".yml"):
                import yaml
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> "Config":
        """Load config from environment variables."""
        config = cls()

        # Calibration
        if tenor := os.getenv("SC_DEFAULT_TENOR"):
            config.calibration.default_tenor_step = float(tenor)
        if vol_type := os.getenv("SC_VOL_TYPE"):
            config.calibration.vol_type = vol_type
        if de_iter := os.getenv("SC_DE_MAX_ITERATIONS"):
            config.calibration.de_max_iterations = int(de_iter)
        if local_iter := os.getenv("SC_LOCAL_MAX_ITERATIONS"):
            config.calibration.local_max_iterations = int(local_iter)
        # Re-run __post_init__ checks on the overridden values
        config.calibration = CalibrationConfig(**config.calibration.to_dict())

        if os.getenv("SC_DEBUG", "").lower() in ("1", "true", "yes"):
            config.debug = True

        # Logging
        if log_level := os.getenv("SC_LOG_LEVEL"):
            config.logging.level = log_level
        if log_file := os.getenv("SC_LOG_FILE"):
            config.logging.file = log_file

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "calibration": self.calibration.to_dict(),
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file": self.logging.file,
                "max_bytes": self.logging.max_bytes,
                "backup_count": self.logging.backup_count,
            },
            "debug": self.debug,
        }

    def save(self, path: str) -> None:
        """Save config to JSON or YAML file (by extension)."""
        path = Path(path)
        with open(path, "w") as f:
            if path.suffix in (".yaml", ".yml"):
                import yaml
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)


def load_config(
    config_file: Optional[str] = None,
    use_env: bool = True
) -> Config:
    """
    Load configuration.

    Starts from defaults, replaces them with the config file (if provided),
    then lets environment variables override individual settings
    (if use_env=True).
    """
    config = Config()

    if config_file:
        try:
            config = Config.from_file(config_file)
            logger.info(f"Loaded config from {config_file}")
        except FileNotFoundError:
            logger.warning(f"Config file not found: {config_file}, using defaults")

    if use_env:
        env_config = Config.from_env()
        # Merge only the variables that are actually set
        if os.getenv("SC_DEFAULT_TENOR"):
            config.calibration.default_tenor_step = env_config.calibration.default_tenor_step
        if os.getenv("SC_VOL_TYPE"):
            config.calibration.vol_type = env_config.calibration.vol_type
        if os.getenv("SC_DE_MAX_ITERATIONS"):
            config.calibration.de_max_iterations = env_config.calibration.de_max_iterations
        if os.getenv("SC_LOCAL_MAX_ITERATIONS"):
            config.calibration.local_max_iterations = env_config.calibration.local_max_iterations
        if os.getenv("SC_DEBUG"):
            config.debug = env_config.debug
        if os.getenv("SC_LOG_LEVEL"):
            config.logging.level = env_config.logging.level
        if os.getenv("SC_LOG_FILE"):
            config.logging.file = env_config.logging.file
        config.calibration = CalibrationConfig(**config.calibration.to_dict())

    return config


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging based on config."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
        handlers=handlers,
        force=True,
    )
