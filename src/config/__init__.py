"""
Configuration package for prevhs

Application settings via environment variables (pydantic-settings) and
project config files listing packs.
"""

from .settings import appsettings, AppSettings
from .project import PackSpec, ProjectConfig, LoadedConfig, config_load

__all__ = ["appsettings", "AppSettings", "PackSpec", "ProjectConfig", "LoadedConfig", "config_load"]
