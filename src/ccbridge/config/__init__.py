"""Configuration management for ccbridge.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides, including the bare ``PORT``
variable used by hosting platforms.
"""

from ccbridge.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
