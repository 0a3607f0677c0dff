"""Drop policy loading and validation."""

from nftdrop.policy.resolver import DropPolicy

__all__ = ["DropPolicy"]
