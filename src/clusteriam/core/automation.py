"""Pulumi Automation API helpers: the provisioning engine for planned IAM units.

Every resource set is provisioned as its own stack. ``up`` materializes the
set's graph through ``IAMStack`` and returns the stack outputs as plain
strings, ready for ``IAMResourceSet.get_all_outputs``. Pulumi errors are
not caught here; retry policy belongs to the caller.
"""

import os
import secrets
from collections.abc import Callable
from typing import Any

import pulumi
import pulumi.automation as auto

from .naming import StackNaming
from .paths import PASSPHRASE_FILE, ensure_work_dir, get_backend_url


def _ensure_passphrase(verbose: bool = False):
    """Ensure the Pulumi passphrase file exists and is the one Pulumi uses.

    Always uses ~/.clusteriam/secrets/pulumi-passphrase so every stack is
    encrypted with the same passphrase.
    """
    if not PASSPHRASE_FILE.exists():
        PASSPHRASE_FILE.parent.mkdir(parents=True, exist_ok=True)
        PASSPHRASE_FILE.write_text(secrets.token_urlsafe(32))
        if os.name != "nt":
            PASSPHRASE_FILE.chmod(0o600)
        if verbose:
            print(f"  Generated Pulumi passphrase: {PASSPHRASE_FILE}")

    os.environ["PULUMI_CONFIG_PASSPHRASE_FILE"] = str(PASSPHRASE_FILE)
    # A direct passphrase would take precedence over the file
    os.environ.pop("PULUMI_CONFIG_PASSPHRASE", None)


def workspace_options() -> auto.LocalWorkspaceOptions:
    """Create standard LocalWorkspaceOptions for Pulumi operations."""
    _ensure_passphrase()
    project = StackNaming.get_project_name()

    return auto.LocalWorkspaceOptions(
        work_dir=str(ensure_work_dir()),
        project_settings=auto.ProjectSettings(
            name=project,
            runtime="python",
            backend=auto.ProjectBackend(url=get_backend_url()),
        ),
        # The language host must inherit PULUMI_CONFIG_PASSPHRASE_FILE
        env_vars=dict(os.environ),
    )


def noop_program():
    """No-op Pulumi program for operations that only need stack access."""
    pass


def make_program(resource_set) -> Callable[[], None]:
    """Pulumi program materializing one planned resource set."""
    from ..infra.components import IAMStack

    def program():
        stack = IAMStack("iam", resource_set.graph)
        for name, value in stack.outputs.items():
            pulumi.export(name, value)

    return program


def select_stack(stack_name: str, program: Callable | None = None, region: str | None = None) -> auto.Stack:
    """Select or create a Pulumi stack with standard configuration.

    Args:
        stack_name: Stack name from StackNaming
        program: Pulumi program to run (defaults to noop)
        region: AWS region to configure on the stack

    Returns:
        Selected or created Pulumi stack
    """
    stack = auto.create_or_select_stack(
        stack_name=stack_name,
        project_name=StackNaming.get_project_name(),
        program=program or noop_program,
        opts=workspace_options(),
    )
    if region:
        stack.set_config("aws:region", auto.ConfigValue(value=region))
    return stack


def stringify_outputs(outputs: dict[str, Any]) -> dict[str, str]:
    """Reduce Pulumi OutputValues to the plain strings the collectors expect."""
    result = {}
    for key, output in outputs.items():
        value = output.value if hasattr(output, "value") else output
        result[key] = str(value)
    return result


def up(
    resource_set,
    stack_name: str,
    region: str | None = None,
    on_output: Callable[[str], None] | None = None,
) -> dict[str, str]:
    """Run pulumi up for a planned resource set.

    Args:
        resource_set: Planned IAMResourceSet
        stack_name: Stack name from StackNaming
        region: AWS region
        on_output: Optional callback for output messages

    Returns:
        Stack outputs after update
    """
    stack = select_stack(stack_name, make_program(resource_set), region)
    result = stack.up(on_output=on_output or (lambda _: None))
    return stringify_outputs(result.outputs)


def outputs(stack_name: str, refresh: bool = False) -> dict[str, str]:
    """Get outputs of an existing stack."""
    stack = select_stack(stack_name)
    if refresh:
        stack.refresh(on_output=lambda _: None)
    return stringify_outputs(stack.outputs())


def destroy(stack_name: str, on_output: Callable[[str], None] | None = None) -> None:
    """Destroy a Pulumi stack."""
    stack = select_stack(stack_name)
    stack.destroy(on_output=on_output or (lambda _: None))
