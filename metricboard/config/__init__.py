"""Configuration package for the metricboard service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
