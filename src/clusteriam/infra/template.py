"""Declarative resource graph and its CloudFormation-compatible rendering.

A ``ResourceGraph`` is an append-only collection of named resources and
named outputs. Property values are plain JSON-like data that may embed the
intrinsics defined here (``Ref``, ``GetAtt``, ``Sub``). The graph checks
that every embedded reference points at a resource that is already
declared, so planners must append in dependency order.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Union

import yaml

from ..errors import DuplicateNameError, DuplicateOutputError, UnknownReferenceError

TEMPLATE_FORMAT_VERSION = "2010-09-09"
POLICY_DOCUMENT_VERSION = "2012-10-17"
TEMPLATE_DESCRIPTION_SUFFIX = "[created and managed by clusteriam]"

_SUB_VARIABLE = re.compile(r"\$\{([^}]+)\}")


class ResourceKind(str, Enum):
    """Kinds of access-control resources the planners declare."""

    ROLE = "role"
    INSTANCE_PROFILE = "instance-profile"
    POLICY = "policy"

    @property
    def cfn_type(self) -> str:
        return _CFN_TYPES[self]


_CFN_TYPES = {
    ResourceKind.ROLE: "AWS::IAM::Role",
    ResourceKind.INSTANCE_PROFILE: "AWS::IAM::InstanceProfile",
    ResourceKind.POLICY: "AWS::IAM::Policy",
}


# ---------- Intrinsics ----------

@dataclass(frozen=True)
class Ref:
    """Reference to another resource in the same graph."""
    name: str

    def render(self) -> dict:
        return {"Ref": self.name}


@dataclass(frozen=True)
class GetAtt:
    """Attribute of another resource in the same graph."""
    name: str
    attribute: str

    def render(self) -> dict:
        return {"Fn::GetAtt": [self.name, self.attribute]}


@dataclass(frozen=True)
class Sub:
    """String with ``${AWS::...}`` pseudo parameters substituted at deploy time."""
    template: str

    def render(self) -> dict:
        return {"Fn::Sub": self.template}

    def resolve(self, variables: Mapping[str, str]) -> str:
        """Substitute variables locally, for engines without Fn::Sub support.

        Raises:
            KeyError: If the template uses a variable that is not supplied
        """
        return _SUB_VARIABLE.sub(lambda m: variables[m.group(1)], self.template)


def iter_references(value: Any) -> Iterator[str]:
    """Yield the names of all resources referenced inside ``value``."""
    if isinstance(value, (Ref, GetAtt)):
        yield value.name
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_references(item)


def render_value(value: Any) -> Any:
    """Convert property values, intrinsics included, to plain template data."""
    if isinstance(value, (Ref, GetAtt, Sub)):
        return value.render()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {k: render_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [render_value(v) for v in value]
    return value


# ---------- Graph ----------

@dataclass(frozen=True)
class Resource:
    kind: ResourceKind
    properties: dict[str, Any]


@dataclass(frozen=True)
class Output:
    value: Any
    exported: bool = True


@dataclass
class ResourceGraph:
    """Append-only builder of named resources and outputs for one unit."""

    description: str = ""
    resources: dict[str, Resource] = field(default_factory=dict)
    outputs: dict[str, Output] = field(default_factory=dict)

    def declare(self, name: str, kind: ResourceKind, properties: Mapping[str, Any]) -> Ref:
        """Declare a resource and return a reference to it.

        The graph is left unchanged when the call fails.

        Raises:
            DuplicateNameError: If ``name`` is already declared
            UnknownReferenceError: If ``properties`` reference an undeclared resource
        """
        if name in self.resources:
            raise DuplicateNameError(name)
        for ref in iter_references(properties):
            if ref not in self.resources:
                raise UnknownReferenceError(ref, f"resource {name!r}")
        self.resources[name] = Resource(kind=ResourceKind(kind), properties=dict(properties))
        return Ref(name)

    def bind_output(self, output_name: str, source: Union[Ref, str], attribute: str,
                    exported: bool = True) -> GetAtt:
        """Expose an attribute of a declared resource as a named output."""
        source_name = source.name if isinstance(source, Ref) else source
        if output_name in self.outputs:
            raise DuplicateOutputError(output_name)
        if source_name not in self.resources:
            raise UnknownReferenceError(source_name, f"output {output_name!r}")
        value = GetAtt(source_name, attribute)
        self.outputs[output_name] = Output(value=value, exported=exported)
        return value

    def bind_output_value(self, output_name: str, value: str, exported: bool = True) -> None:
        """Expose a value already known at planning time as a named output."""
        if output_name in self.outputs:
            raise DuplicateOutputError(output_name)
        self.outputs[output_name] = Output(value=value, exported=exported)

    def get(self, name: str) -> Optional[Resource]:
        return self.resources.get(name)

    def names(self, kind: Optional[ResourceKind] = None) -> list[str]:
        """Resource names in declaration order, optionally filtered by kind."""
        return [n for n, r in self.resources.items() if kind is None or r.kind == kind]

    def __contains__(self, name: object) -> bool:
        return name in self.resources

    def __len__(self) -> int:
        return len(self.resources)

    def to_template(self) -> dict[str, Any]:
        """Build the CloudFormation-compatible template dictionary."""
        template: dict[str, Any] = {"AWSTemplateFormatVersion": TEMPLATE_FORMAT_VERSION}
        if self.description:
            template["Description"] = self.description
        template["Resources"] = {
            name: {"Type": r.kind.cfn_type, "Properties": render_value(r.properties)}
            for name, r in self.resources.items()
        }
        if self.outputs:
            rendered = {}
            for name, output in self.outputs.items():
                entry: dict[str, Any] = {"Value": render_value(output.value)}
                if output.exported:
                    entry["Export"] = {"Name": Sub("${AWS::StackName}::" + name).render()}
                rendered[name] = entry
            template["Outputs"] = rendered
        return template


def render_json(graph: ResourceGraph) -> str:
    """Render the graph as a JSON template."""
    return json.dumps(graph.to_template(), indent=2)


def render_yaml(graph: ResourceGraph) -> str:
    """Render the graph as a YAML template."""
    return yaml.safe_dump(graph.to_template(), default_flow_style=False, sort_keys=False)


# ---------- Document helpers ----------

SERVICE_PRINCIPALS: dict[str, Union[str, Sub]] = {
    "EC2": Sub("ec2.${AWS::URLSuffix}"),
    "EKS": "eks.amazonaws.com",
    "EKSFargatePods": "eks-fargate-pods.amazonaws.com",
}


def make_service_ref(service: str) -> Union[str, Sub]:
    """Return the partition-aware service principal for ``service``."""
    try:
        return SERVICE_PRINCIPALS[service]
    except KeyError:
        raise ValueError(f"Unknown service principal: {service}") from None


def make_policy_arns(*names: str) -> list[Sub]:
    """Turn AWS managed policy names into partition-aware ARNs."""
    return [Sub("arn:${AWS::Partition}:iam::aws:policy/" + name) for name in names]


def make_policy_document(*statements: Mapping[str, Any]) -> dict[str, Any]:
    return {"Version": POLICY_DOCUMENT_VERSION, "Statement": [dict(s) for s in statements]}


def make_assume_role_policy_document_for_services(*services: Union[str, Sub]) -> dict[str, Any]:
    """Trust policy allowing the given service principals to assume a role."""
    return make_policy_document({
        "Effect": "Allow",
        "Principal": {"Service": list(services)},
        "Action": ["sts:AssumeRole"],
    })


def policy_name_from_arn(arn: Union[str, Sub]) -> str:
    """Return the trailing resource name of a policy ARN (``.../Name`` -> ``Name``)."""
    text = arn.template if isinstance(arn, Sub) else arn
    return text.rsplit("/", 1)[-1]


__all__ = [
    "GetAtt",
    "Output",
    "Ref",
    "Resource",
    "ResourceGraph",
    "ResourceKind",
    "Sub",
    "make_assume_role_policy_document_for_services",
    "make_policy_arns",
    "make_policy_document",
    "make_service_ref",
    "policy_name_from_arn",
    "render_json",
    "render_yaml",
]
