"""YAML-backed base model for cluster configs and status files."""

from pathlib import Path
from typing import TypeVar

import typer
import yaml
from pydantic import BaseModel, ValidationError
from rich.console import Console

T = TypeVar("T", bound="ConfigModel")
console = Console(stderr=True)


class ConfigModel(BaseModel):
    """Pydantic model read from and written to a YAML file."""

    @classmethod
    def from_yaml(cls: type[T], path: Path) -> T:
        """Load and validate a model from ``path``.

        Problems are reported on stderr and end the command.

        Raises:
            typer.Exit: If the file is missing, unreadable, not YAML or invalid
        """
        try:
            data = yaml.safe_load(path.read_text())
        except FileNotFoundError:
            console.print(f"[red]Configuration file not found:[/red] {path}")
            raise typer.Exit(1)
        except OSError as e:
            console.print(f"[red]Cannot read {path}:[/red] {e}")
            raise typer.Exit(1)
        except yaml.YAMLError as e:
            location = ""
            mark = getattr(e, "problem_mark", None)
            if mark is not None:
                location = f" (line {mark.line + 1}, column {mark.column + 1})"
            console.print(f"[red]{path.name} is not valid YAML{location}[/red]")
            raise typer.Exit(1)

        try:
            return cls(**(data or {}))
        except ValidationError as e:
            console.print(f"[red]{path.name} is not a valid {cls.__name__}:[/red]")
            for err in e.errors():
                field = ".".join(str(loc) for loc in err["loc"]) or "(root)"
                console.print(f"  [yellow]{field}:[/yellow] {err['msg']}")
            raise typer.Exit(1)

    def to_yaml(self, path: Path) -> None:
        """Write the model to ``path``, leaving unset optional fields out."""
        path.write_text(self.to_yaml_string())

    def to_yaml_string(self) -> str:
        return yaml.safe_dump(
            self.model_dump(mode="json", exclude_none=True),
            default_flow_style=False,
            sort_keys=False,
        )
