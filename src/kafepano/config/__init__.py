"""
Local process configuration (YAML).
"""

from .loader import ConfigLoader, collect_warnings, expand_env_vars

__all__ = ["ConfigLoader", "collect_warnings", "expand_env_vars"]
