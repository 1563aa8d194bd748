"""Base class for independently provisioned IAM resource sets."""

from collections.abc import Mapping
from typing import Any, Union

from .outputs import Collector, OutputBindingRegistry
from .template import GetAtt, Ref, ResourceGraph, ResourceKind, render_json, render_yaml


class IAMResourceSet:
    """One unit of IAM resources: a graph, its output bindings and control flags.

    Subclasses implement ``add_all_resources``, which is called once and is
    the only place the graph and registry are mutated. ``with_iam`` is true
    when the set declares any new IAM resource; ``with_named_iam`` is true
    when a declared role has a caller-fixed name, which requires elevated
    provisioning capabilities.
    """

    def __init__(self, description: str = ""):
        self.graph = ResourceGraph(description=description)
        self.outputs = OutputBindingRegistry()
        self.with_iam = False
        self.with_named_iam = False
        # Output name -> value written back by the last successful collection
        self.resolved: dict[str, str] = {}

    def add_all_resources(self) -> None:
        raise NotImplementedError

    def new_resource(self, name: str, kind: ResourceKind, properties: Mapping[str, Any]) -> Ref:
        return self.graph.declare(name, kind, properties)

    def define_output_from_att(self, name: str, resource: Union[Ref, str], attribute: str,
                               exported: bool, collector: Collector) -> GetAtt:
        """Bind a resource attribute as output and write it back on collection."""
        value = self.graph.bind_output(name, resource, attribute, exported)
        self.outputs.define(name, self._recording(name, collector))
        return value

    def define_pass_through_output(self, name: str, value: str, exported: bool,
                                   collector: Collector) -> None:
        """Bind a value known at planning time as output."""
        self.graph.bind_output_value(name, value, exported)
        self.outputs.define_pass_through(name, value, self._recording(name, collector))

    def required_capabilities(self) -> list[str]:
        """CloudFormation capabilities the provisioning engine must be granted."""
        if self.with_named_iam:
            return ["CAPABILITY_NAMED_IAM"]
        if self.with_iam:
            return ["CAPABILITY_IAM"]
        return []

    def render_json(self) -> str:
        return render_json(self.graph)

    def render_yaml(self) -> str:
        return render_yaml(self.graph)

    def _recording(self, name: str, collector: Collector) -> Collector:
        def collect(value: str) -> None:
            collector(value)
            self.resolved[name] = value
        return collect

    def get_all_outputs(self, values: Mapping[str, str]) -> dict[str, str]:
        """Write provisioning outputs back into the in-memory cluster config.

        Returns:
            The resolved output values, keyed by output name
        """
        self.outputs.collect(values)
        return dict(self.resolved)
