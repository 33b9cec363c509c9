"""Configuration models and loaders."""

from .settings import (
    RestartPolicy,
    ProviderConfig,
    BridgeSettings,
    default_settings,
    apply_remote_base_url,
    load_settings,
)

__all__ = [
    "RestartPolicy",
    "ProviderConfig",
    "BridgeSettings",
    "default_settings",
    "apply_remote_base_url",
    "load_settings",
]
