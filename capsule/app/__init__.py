"""Application composition for the Capsule client."""

from .client import CapsuleClient

__all__ = ["CapsuleClient"]
