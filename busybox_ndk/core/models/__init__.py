"""
Domain models — Pydantic types for the build pipeline.

All models are re-exported here for convenient access:

    from busybox_ndk.core.models import Action, Receipt, BuildConfig, ArchSpec
"""

from busybox_ndk.core.models.action import Action, Receipt
from busybox_ndk.core.models.arch import ARCHITECTURES, ArchSpec, get_arch, triple_for
from busybox_ndk.core.models.build import BuildConfig, GeneratedFile, ToolchainPaths

__all__ = [
    "ARCHITECTURES",
    # action.py
    "Action",
    # arch.py
    "ArchSpec",
    # build.py
    "BuildConfig",
    "GeneratedFile",
    "Receipt",
    "ToolchainPaths",
    "get_arch",
    "triple_for",
]
