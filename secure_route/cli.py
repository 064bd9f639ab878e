"""
secure-route CLI for checking hook configuration.
"""

import sys
import json
from typing import List, Optional
import typer
import yaml
from rich.console import Console
from rich.table import Table

from secure_route import __version__
from secure_route.core.config import build_hook_configuration, load_merged_config
from secure_route.core.errors import ConfigurationError
from secure_route.core.invocation import classify_hook, declared_parameters
from secure_route.models.schemas import HOOK_ARGUMENTS, SYNC_HOOKS, HookConfiguration, HookReport

app = typer.Typer(
    name="secure-route",
    help="secure-route configuration tools",
    add_completion=False
)

console = Console()


def describe_hooks(config: HookConfiguration) -> List[HookReport]:
    """Report how each hook will be called by the invocation adapter."""
    reports = []
    for name, arguments in HOOK_ARGUMENTS.items():
        hook = config.get(name)
        if hook is None:
            reports.append(HookReport(name=name, configured=False, arguments=arguments))
            continue

        module = getattr(hook, "__module__", None)
        qualname = getattr(hook, "__qualname__", None) or type(hook).__name__
        reports.append(HookReport(
            name=name,
            configured=True,
            target=f"{module}.{qualname}" if module else qualname,
            arguments=arguments,
            declared=declared_parameters(hook),
            style="sync" if name in SYNC_HOOKS else classify_hook(hook, arguments).value
        ))
    return reports


@app.command("inspect")
def inspect_hooks(
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Config file path"),
    output: str = typer.Option("table", "-o", help="Output format: table, json, yaml")
):
    """Show configured hooks and the calling convention each will get."""
    try:
        settings = load_merged_config(config_file)
        config = build_hook_configuration(settings)
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)

    reports = describe_hooks(config)

    if output == "json":
        print(json.dumps([r.model_dump() for r in reports], indent=2))
    elif output == "yaml":
        print(yaml.dump([r.model_dump() for r in reports], default_flow_style=False))
    else:  # table
        table = Table(title="secure-route hooks")
        table.add_column("Hook", style="cyan")
        table.add_column("Target")
        table.add_column("Args", justify="right")
        table.add_column("Declared", justify="right")
        table.add_column("Convention")

        for report in reports:
            if not report.configured:
                table.add_row(report.name, "[dim]-[/dim]", str(report.arguments), "", "[dim]unset[/dim]")
                continue
            declared = "?" if report.declared is None else str(report.declared)
            colour = "yellow" if report.style == "callback" else "green"
            table.add_row(
                report.name,
                report.target or "",
                str(report.arguments),
                declared,
                f"[{colour}]{report.style}[/{colour}]"
            )

        console.print(table)
        console.print(f"lock: {config.lock}  basic: {config.basic}")


@app.command()
def version():
    """Show the secure-route version."""
    console.print(f"secure-route {__version__}")


if __name__ == "__main__":
    app()
