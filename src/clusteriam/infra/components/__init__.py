"""Infrastructure components using Pulumi ComponentResources."""

from .iam import IAMStack

__all__ = ["IAMStack"]
