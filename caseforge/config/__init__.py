from .loader import load_suite
from .types import ConfigError, SuiteConfig, UnsupportedConfigFormatError

__all__ = ["load_suite", "SuiteConfig", "ConfigError", "UnsupportedConfigFormatError"]
