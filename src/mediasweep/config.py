"""Settings management for mediasweep.

Settings are stored as TOML in a platform-specific location:
- Linux/macOS: ~/.config/mediasweep/mediasweep.toml
- Windows: %APPDATA%\\mediasweep\\mediasweep.toml

The ``MEDIASWEEP_CONFIG`` environment variable overrides the location.
"""

import os
import platform
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import tomli_w

from .errors import ConfigError

DEFAULT_SCANNER = "czkawka_cli"
OUTPUT_FORMATS = ("text", "json")


@dataclass
class Settings:
    """User settings; empty strings mean "use the default"."""

    scanner_path: str = ""
    scratch_dir: str = ""
    output_format: str = "text"

    @property
    def scanner(self) -> str:
        """Scanner executable to invoke."""
        return self.scanner_path or DEFAULT_SCANNER

    def to_toml_dict(self) -> Dict[str, Any]:
        return {
            "scanner": {"path": self.scanner_path, "scratch_dir": self.scratch_dir},
            "output": {"format": self.output_format},
        }

    @classmethod
    def from_toml_dict(cls, config: Dict[str, Any]) -> "Settings":
        scanner = config.get("scanner", {})
        output = config.get("output", {})
        output_format = str(output.get("format", "text"))
        if output_format not in OUTPUT_FORMATS:
            raise ConfigError(
                f"Unsupported output format: {output_format}. "
                f"Use one of: {', '.join(OUTPUT_FORMATS)}"
            )
        return cls(
            scanner_path=str(scanner.get("path", "")),
            scratch_dir=str(scanner.get("scratch_dir", "")),
            output_format=output_format,
        )


def get_config_dir() -> Path:
    """Get platform-specific configuration directory."""
    if platform.system() == "Windows":
        appdata = os.getenv("APPDATA")
        if not appdata:
            raise ConfigError("APPDATA environment variable not set")
        return Path(appdata) / "mediasweep"
    return Path.home() / ".config" / "mediasweep"


def get_config_file() -> Path:
    """Get path to user configuration file."""
    override = os.getenv("MEDIASWEEP_CONFIG")
    if override:
        return Path(override)
    return get_config_dir() / "mediasweep.toml"


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Load settings from a TOML file.

    Args:
        path: Settings file (default: user configuration file)

    Returns:
        Settings, or defaults if the file does not exist

    Raises:
        ConfigError: If the file exists but is not valid TOML
    """
    config_file = path or get_config_file()
    if not config_file.exists():
        return Settings()

    try:
        with open(config_file, "rb") as f:
            config = tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        raise ConfigError(f"Failed to read settings from {config_file}: {e}") from e

    return Settings.from_toml_dict(config)


def save_settings(settings: Settings, path: Optional[Path] = None) -> Path:
    """Write settings to a TOML file, creating its directory if needed."""
    config_file = path or get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, "wb") as f:
        tomli_w.dump(settings.to_toml_dict(), f)

    return config_file
