"""Output bindings: write provisioning results back into the cluster spec.

Planners record one binding per output name. After the provisioning engine
reports the final output values, ``OutputBindingRegistry.collect`` makes a
single ordered pass over the bindings and calls each collector with its
value.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import DuplicateOutputError, OutputCollectionError

logger = logging.getLogger(__name__)

# Output names shared with downstream consumers
CLUSTER_SERVICE_ROLE_ARN = "ServiceRoleARN"
CLUSTER_FARGATE_POD_EXECUTION_ROLE_ARN = "FargatePodExecutionRoleARN"
NODEGROUP_INSTANCE_PROFILE_ARN = "InstanceProfileARN"
NODEGROUP_INSTANCE_ROLE_ARN = "InstanceRoleARN"
SERVICEACCOUNT_ROLE_ARN = "Role1"

Collector = Callable[[str], None]


class BindingKind(str, Enum):
    ATTRIBUTE = "attribute"
    PASS_THROUGH = "pass-through"
    LOOKUP = "lookup"


@dataclass(frozen=True)
class OutputBinding:
    """A deferred write-back for one output.

    ``value`` is set for pass-through bindings. ``source`` names the output
    whose value feeds a lookup binding.
    """
    name: str
    kind: BindingKind
    collector: Collector
    value: Optional[str] = None
    source: Optional[str] = None


class OutputBindingRegistry:
    """Collectors keyed by output name, resolved once after provisioning."""

    def __init__(self):
        self._bindings: dict[str, OutputBinding] = {}
        self.collected = False

    def _add(self, binding: OutputBinding) -> None:
        if binding.name in self._bindings:
            raise DuplicateOutputError(binding.name)
        self._bindings[binding.name] = binding

    def define(self, name: str, collector: Collector) -> None:
        """Bind an output whose value is reported by the provisioning engine."""
        self._add(OutputBinding(name, BindingKind.ATTRIBUTE, collector))

    def define_pass_through(self, name: str, value: str, collector: Collector) -> None:
        """Bind an output whose value is already known while planning."""
        self._add(OutputBinding(name, BindingKind.PASS_THROUGH, collector, value=value))

    def define_lookup(self, name: str, source: str, collector: Collector) -> None:
        """Bind an output derived from another output's value by ``collector``."""
        self._add(OutputBinding(name, BindingKind.LOOKUP, collector, source=source))

    def get(self, name: str) -> Optional[OutputBinding]:
        return self._bindings.get(name)

    def names(self, kind: Optional[BindingKind] = None) -> list[str]:
        return [n for n, b in self._bindings.items() if kind is None or b.kind == kind]

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def _value_of(self, name: str, values: Mapping[str, str]) -> str:
        binding = self._bindings.get(name)
        if binding is not None and binding.kind == BindingKind.PASS_THROUGH:
            return binding.value
        if name not in values:
            raise OutputCollectionError(f"output {name!r} was not reported by the provisioning engine")
        return values[name]

    def collect(self, values: Mapping[str, str]) -> None:
        """Call every collector with its resolved value, in binding order.

        All values are resolved before the first collector runs, so a
        missing output leaves the spec untouched. Collector exceptions
        propagate unchanged and leave the registry uncollected.

        Args:
            values: Output values reported by the provisioning engine

        Raises:
            OutputCollectionError: If outputs were already collected or a
                required value is missing
        """
        if self.collected:
            raise OutputCollectionError("outputs have already been collected")
        resolved = {
            binding.name: self._value_of(
                binding.source if binding.kind == BindingKind.LOOKUP else binding.name, values
            )
            for binding in self._bindings.values()
        }
        for binding in self._bindings.values():
            logger.debug(f"Collecting output {binding.name} ({binding.kind.value})")
            binding.collector(resolved[binding.name])
        self.collected = True
