"""Core utilities: naming, paths and provisioning automation."""

from .naming import StackNaming

__all__ = ["StackNaming"]
