"""clusteriam CLI entry point."""

# Set environment variables before any other imports to suppress gRPC warnings
import os
os.environ.setdefault("GRPC_ENABLE_FORK_SUPPORT", "0")
os.environ.setdefault("GRPC_VERBOSITY", "ERROR")

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from ..components import ClusterConfig, ClusterStatus, status_path_for
from ..core import StackNaming
from ..errors import ClusterIAMError
from ..infra import ClusterResourceSet, IAMResourceSet, IAMServiceAccountResourceSet, NodeGroupResourceSet
from ..infra.importer import InstanceRoleImporter
from ..infra.oidc import OIDCTrust
from .display import error, info, info_dict, resource_set_summary, section, success, warning

app = typer.Typer(
    name="ciam",
    help="Plan and provision the IAM resources of an EKS-style cluster",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


class Unit(str, Enum):
    cluster = "cluster"
    nodegroup = "nodegroup"
    serviceaccount = "serviceaccount"


class OutputFormat(str, Enum):
    json = "json"
    yaml = "yaml"


def build_resource_set(
    config: ClusterConfig,
    unit: Unit,
    nodegroup: Optional[str] = None,
    namespace: str = "default",
    name: Optional[str] = None,
) -> tuple[IAMResourceSet, str]:
    """Plan one unit of the cluster and return it with its stack name.

    Raises:
        typer.Exit: If the selected unit is not declared in the config
    """
    if unit == Unit.cluster:
        rs = ClusterResourceSet(config)
        stack_name = StackNaming.get_cluster_stack_name(config.name)
    elif unit == Unit.nodegroup:
        if not nodegroup:
            error("--nodegroup is required for nodegroup units")
            raise typer.Exit(1)
        try:
            ng = config.get_node_group(nodegroup)
        except KeyError:
            error(f"Nodegroup {nodegroup!r} not found in cluster {config.name!r}")
            raise typer.Exit(1)
        rs = NodeGroupResourceSet(config.iam, ng, InstanceRoleImporter(), cluster_name=config.name)
        stack_name = StackNaming.get_nodegroup_stack_name(config.name, ng.name)
    else:
        if not name:
            error("--name is required for serviceaccount units")
            raise typer.Exit(1)
        if config.iam.oidc is None:
            error("iam.oidc must be configured to plan service account roles")
            raise typer.Exit(1)
        try:
            sa = config.get_service_account(namespace, name)
        except KeyError:
            error(f"Service account {namespace}/{name} not found in cluster {config.name!r}")
            raise typer.Exit(1)
        rs = IAMServiceAccountResourceSet(sa, OIDCTrust.from_config(config.iam.oidc))
        stack_name = StackNaming.get_serviceaccount_stack_name(config.name, namespace, name)

    try:
        rs.add_all_resources()
    except ClusterIAMError as e:
        error(f"Planning failed: {e}")
        raise typer.Exit(1)
    return rs, stack_name


def save_status(config: Path, cluster_name: str, stack_name: str, resolved: dict[str, str]) -> Path:
    """Record resolved outputs in the status file; the cluster config is never rewritten."""
    path = status_path_for(config)
    status = ClusterStatus.load_or_create(path, cluster_name)
    status.record(stack_name, resolved)
    status.to_yaml(path)
    success(f"Saved outputs of {stack_name} to {path}")
    return path


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")):
    """Plan and provision cluster IAM resources."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def render(
    unit: Unit = typer.Argument(..., help="Unit to plan"),
    config: Path = typer.Option(..., "--config", "-c", help="Cluster configuration file (YAML)"),
    nodegroup: Optional[str] = typer.Option(None, "--nodegroup", "-n", help="Nodegroup name"),
    namespace: str = typer.Option("default", "--namespace", help="Service account namespace"),
    name: Optional[str] = typer.Option(None, "--name", help="Service account name"),
    output_format: OutputFormat = typer.Option(OutputFormat.json, "--format", "-o", help="Template format"),
):
    """Render the IAM template of one unit.

    Examples:
        ciam render cluster -c cluster.yaml
        ciam render nodegroup -c cluster.yaml -n workers -o yaml
    """
    cluster = ClusterConfig.from_yaml(config)
    rs, stack_name = build_resource_set(cluster, unit, nodegroup, namespace, name)

    section(f"Planned {unit.value} IAM")
    resource_set_summary(rs, stack_name)
    typer.echo(rs.render_yaml() if output_format == OutputFormat.yaml else rs.render_json())


@app.command()
def deploy(
    unit: Unit = typer.Argument(..., help="Unit to provision"),
    config: Path = typer.Option(..., "--config", "-c", help="Cluster configuration file (YAML)"),
    nodegroup: Optional[str] = typer.Option(None, "--nodegroup", "-n", help="Nodegroup name"),
    namespace: str = typer.Option("default", "--namespace", help="Service account namespace"),
    name: Optional[str] = typer.Option(None, "--name", help="Service account name"),
    write: bool = typer.Option(False, "--write", help="Save resolved ARNs to the status file beside the config"),
    verbose: bool = typer.Option(False, "--show-pulumi", help="Stream Pulumi output"),
):
    """Provision the IAM resources of one unit and resolve its outputs."""
    from ..core import automation

    cluster = ClusterConfig.from_yaml(config)
    rs, stack_name = build_resource_set(cluster, unit, nodegroup, namespace, name)

    section(f"Provisioning {unit.value} IAM")
    resource_set_summary(rs, stack_name)
    if not rs.with_iam:
        info("No new IAM resources; only existing identifiers are exported")

    try:
        values = automation.up(rs, stack_name, region=cluster.region,
                               on_output=info if verbose else None)
    except Exception as e:
        error(f"Provisioning failed: {e}")
        raise typer.Exit(1)

    try:
        resolved = rs.get_all_outputs(values)
    except ClusterIAMError as e:
        error(f"Could not resolve outputs: {e}")
        raise typer.Exit(1)

    success(f"Provisioned {stack_name}")
    info_dict(resolved)

    if write:
        save_status(config, cluster.name, stack_name, resolved)
    else:
        warning("Resolved ARNs were not saved (use --write)")


@app.command()
def outputs(
    unit: Unit = typer.Argument(..., help="Unit to read"),
    config: Path = typer.Option(..., "--config", "-c", help="Cluster configuration file (YAML)"),
    nodegroup: Optional[str] = typer.Option(None, "--nodegroup", "-n", help="Nodegroup name"),
    namespace: str = typer.Option("default", "--namespace", help="Service account namespace"),
    name: Optional[str] = typer.Option(None, "--name", help="Service account name"),
    refresh: bool = typer.Option(False, "--refresh", help="Refresh stack state first"),
    write: bool = typer.Option(False, "--write", help="Save resolved ARNs to the status file beside the config"),
):
    """Resolve the outputs of an already provisioned unit."""
    from ..core import automation

    cluster = ClusterConfig.from_yaml(config)
    rs, stack_name = build_resource_set(cluster, unit, nodegroup, namespace, name)

    try:
        values = automation.outputs(stack_name, refresh=refresh)
    except Exception as e:
        error(f"Could not read stack {stack_name}: {e}")
        raise typer.Exit(1)

    try:
        resolved = rs.get_all_outputs(values)
    except ClusterIAMError as e:
        error(f"Could not resolve outputs of {stack_name}: {e}")
        raise typer.Exit(1)

    section(f"Outputs of {stack_name}")
    info_dict(resolved)
    if write:
        save_status(config, cluster.name, stack_name, resolved)


@app.command()
def destroy(
    unit: Unit = typer.Argument(..., help="Unit to destroy"),
    config: Path = typer.Option(..., "--config", "-c", help="Cluster configuration file (YAML)"),
    nodegroup: Optional[str] = typer.Option(None, "--nodegroup", "-n", help="Nodegroup name"),
    namespace: str = typer.Option("default", "--namespace", help="Service account namespace"),
    name: Optional[str] = typer.Option(None, "--name", help="Service account name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """Destroy the IAM resources of one unit.

    Existing roles and profiles referenced by the config are never
    touched; only resources declared by the unit's stack are removed.
    """
    from ..core import automation

    cluster = ClusterConfig.from_yaml(config)
    _, stack_name = build_resource_set(cluster, unit, nodegroup, namespace, name)

    if not yes:
        warning(f"This will destroy stack {stack_name}")
        if not typer.confirm("Continue?"):
            success("Cancelled")
            raise typer.Exit(0)

    try:
        automation.destroy(stack_name)
    except Exception as e:
        error(f"Destroy failed: {e}")
        raise typer.Exit(1)
    success(f"Destroyed {stack_name}")

    path = status_path_for(config)
    if path.exists():
        status = ClusterStatus.from_yaml(path)
        if status.stacks.pop(stack_name, None) is not None:
            status.to_yaml(path)


if __name__ == "__main__":
    app()
