"""
Plugin system for security providers and helper functions.
"""

from .registry import PluginRegistry, security_providers
from .loader import HelperResolver, load_provider

__all__ = [
    "PluginRegistry",
    "security_providers",
    "HelperResolver",
    "load_provider",
]
