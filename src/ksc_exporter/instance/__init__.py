"""
Instance discovery package initialization.

Exports:
- KscInstance: A discovered resource.
- InstanceRepository: Interface of the remote instance-listing client.
- InstanceCache: Periodically refreshed instance snapshot.
"""

from .base import InstanceRepository, KscInstance
from .cache import InstanceCache

__all__ = ["KscInstance", "InstanceRepository", "InstanceCache"]
