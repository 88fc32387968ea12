from .base import ProviderProcess, ProviderSandbox, SandboxProvider
from .e2b import E2BProvider, E2BSandbox

__all__ = [
    "E2BProvider",
    "E2BSandbox",
    "ProviderProcess",
    "ProviderSandbox",
    "SandboxProvider",
]
