"""
Configuration system for drawgen.

Provides structured configuration using dataclasses with clear defaults,
type safety, and compatibility with dict-based configs. Configuration is
always passed explicitly into the generators, never read from globals.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


@dataclass
class GeneratorConfig:
    """
    Central configuration for a generation run.

    Example:
        >>> config = GeneratorConfig(prefix="Icons", scale=2.0)
        >>> write_outputs(["arrow.pdf"], config)
    """

    # Generated symbols
    prefix: str = ""

    # Output artifacts (each optional)
    header_path: Optional[str] = None
    impl_path: Optional[str] = None
    caller_path: Optional[str] = None
    header_import_path: Optional[str] = None

    # Caller harness
    scale: float = 1.0
    allow_antialiasing: bool = False
    output_dir: str = "."

    # Input handling
    split_multipage: bool = False
    max_workers: Optional[int] = None

    # Logging
    log_level: str = "INFO"

    def validate(self) -> bool:
        """
        Validate configuration values.

        Returns:
            True if all values are valid, False otherwise
        """
        if self.scale <= 0:
            logger.error("scale must be positive")
            return False

        if self.max_workers is not None and self.max_workers < 1:
            logger.error("max_workers must be at least 1")
            return False

        if self.prefix and not self.prefix.isidentifier():
            logger.error(f"prefix '{self.prefix}' is not a valid identifier")
            return False

        if self.caller_path and not self.header_import_path and not self.header_path:
            logger.error("caller output needs header_import_path or header_path")
            return False

        return True

    @property
    def resolved_header_import_path(self) -> Optional[str]:
        return self.header_import_path or self.header_path

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'GeneratorConfig':
        """
        Create GeneratorConfig from dictionary.

        Unknown keys are ignored with a warning.
        """
        valid_keys = set(cls.__dataclass_fields__)

        filtered_config = {}
        for key, value in config.items():
            if key in valid_keys:
                filtered_config[key] = value
            else:
                logger.warning(f"Unknown config key '{key}' will be ignored")

        return cls(**filtered_config)

    @classmethod
    def default(cls) -> 'GeneratorConfig':
        """Create configuration with default values."""
        return cls()

    def __repr__(self) -> str:
        return (
            f"GeneratorConfig("
            f"prefix={self.prefix!r}, "
            f"scale={self.scale}, "
            f"antialiasing={self.allow_antialiasing}, "
            f"split_multipage={self.split_multipage})"
        )
