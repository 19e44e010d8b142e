"""
API route bridge: runs a path-routed ASGI application behind a
function-per-invocation serverless host.
"""

from bridge.adapter import InvocationAdapter
from bridge.loaders import CapabilityLoader, DevLoader, ProdLoader, ResolutionError, select_loader
from bridge.settings import Settings

__all__ = [
    "CapabilityLoader",
    "DevLoader",
    "InvocationAdapter",
    "ProdLoader",
    "ResolutionError",
    "Settings",
    "select_loader",
]
