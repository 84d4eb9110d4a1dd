"""
Configuration management for GravityPulse.

Loads settings from environment variables and an optional .env file and exposes
a single source of truth for all service configuration.
"""

from gravity_pulse.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
