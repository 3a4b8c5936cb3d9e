"""
Domain models — Pydantic types for devstrap.

All models are re-exported here for convenient access:

    from devstrap.core.models import Action, Receipt, BootstrapProfile, DevstrapConfig
"""

from devstrap.core.models.action import Action, Receipt
from devstrap.core.models.profile import (
    BootstrapProfile,
    DevstrapConfig,
    EditorSpec,
    GitIdentity,
    PackageSpec,
    Settings,
)

__all__ = [
    # action.py
    "Action",
    # profile.py
    "BootstrapProfile",
    "DevstrapConfig",
    "EditorSpec",
    "GitIdentity",
    "PackageSpec",
    "Receipt",
    "Settings",
]
