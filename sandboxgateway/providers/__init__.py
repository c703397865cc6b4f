# -*- coding: utf-8 -*-
"""Remote sandbox provider interfaces."""

# First-Party
from sandboxgateway.providers.base import ProviderError, RemoteExecution, RemoteExecutionError, RemoteFileEntry, RemoteSandbox, SandboxProvider

__all__ = [
    "ProviderError",
    "RemoteExecution",
    "RemoteExecutionError",
    "RemoteFileEntry",
    "RemoteSandbox",
    "SandboxProvider",
]
