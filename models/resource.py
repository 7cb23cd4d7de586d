"""
Resource model for the Banker's Scheduler Simulator.

Represents resource types with named instances and the catalog that
holds them in declaration order.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class ResourceType:
    """
    Represents a resource type in the operating system simulation.

    Attributes:
        name: Resource type name as declared (e.g. "R1")
        instances: Ordered instance identifiers

    Invariant:
        The instance count is fixed at construction. Only availability
        (tracked by the ledger) ever varies.
    """
    name: str
    instances: Tuple[str, ...]

    def __post_init__(self):
        """Validate resource type."""
        if not self.name:
            raise ValueError("Resource type name cannot be empty")
        # Accept any iterable, store as tuple
        object.__setattr__(self, 'instances', tuple(self.instances))
        if len(set(self.instances)) != len(self.instances):
            raise ValueError(f"Resource {self.name}: duplicate instance identifiers")

    @property
    def instance_count(self) -> int:
        """Total number of instances of this type."""
        return len(self.instances)


class ResourceCatalog:
    """
    Immutable, ordered list of resource types.

    Resource order is significant: the position of a type in the catalog
    is the position of its amount in every request/release vector.
    """

    def __init__(self, resource_types: Iterable[ResourceType]):
        self._types: Tuple[ResourceType, ...] = tuple(resource_types)

        names = [r.name for r in self._types]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate resource type names: {names}")

        self._instance_owner: Dict[str, int] = {}
        for index, resource in enumerate(self._types):
            for instance in resource.instances:
                if instance in self._instance_owner:
                    raise ValueError(
                        f"Instance '{instance}' declared by more than one resource type"
                    )
                self._instance_owner[instance] = index

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Iterable[str]]]) -> "ResourceCatalog":
        """Build a catalog from (name, instances) pairs."""
        return cls(ResourceType(name, tuple(instances)) for name, instances in pairs)

    @property
    def num_resources(self) -> int:
        """Number of resource types in the catalog."""
        return len(self._types)

    @property
    def names(self) -> List[str]:
        return [r.name for r in self._types]

    @property
    def instance_counts(self) -> np.ndarray:
        """Total instances per resource type [R]."""
        return np.array([r.instance_count for r in self._types], dtype=int)

    def resource_index_of(self, instance: str) -> Optional[int]:
        """Index of the resource type owning an instance, or None if unknown."""
        return self._instance_owner.get(instance)

    def has_instance(self, instance: str) -> bool:
        return instance in self._instance_owner

    def __len__(self) -> int:
        return len(self._types)

    def __iter__(self):
        return iter(self._types)

    def __getitem__(self, index: int) -> ResourceType:
        return self._types[index]

    def __repr__(self) -> str:
        body = ", ".join(f"{r.name}[{r.instance_count}]" for r in self._types)
        return f"ResourceCatalog({body})"
