"""
Instance model and the repository interface used for discovery
"""

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class KscInstance:
    """A monitorable resource of a cloud product"""

    instance_id: str
    name: str = ""
    meta: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@runtime_checkable
class InstanceRepository(Protocol):
    """Lists live instances of a product namespace"""

    async def list_instances(self, namespace: str) -> list[KscInstance]:
        ...
