"""
Scheduler Plugin System

Public API for the extension pipeline:
    PluginMeta         — plugin metadata dataclass
    PluginBase         — abstract base class for all plugins
    PluginRegistry     — registry, hook resolution and dispatch
    HookImplementation — one plugin's implementation of one hook name
    ProcessResult      — return codes for the *_process hooks
    plugin_registry    — global singleton registry instance
"""

from .base import PluginBase, PluginMeta, ProcessResult
from .registry import HookImplementation, PluginRegistry, plugin_registry

__all__ = [
    "HookImplementation",
    "PluginBase",
    "PluginMeta",
    "PluginRegistry",
    "ProcessResult",
    "plugin_registry",
]
