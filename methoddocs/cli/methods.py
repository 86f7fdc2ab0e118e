"""CLI commands for browsing and editing method records through the API."""

import json
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from methoddocs.core.methods.models import Category

from .client import ClientError
from .context import get_client

console = Console()


def _fail(ctx: click.Context, error: ClientError) -> None:
    console.print(f"[red]Error ({error.status_code or 'no response'}): {error.message}[/red]")
    for item in error.field_errors:
        console.print(f"  [red]- {item.get('field')}: {item.get('message')}[/red]")
    ctx.exit(1)


def parse_param(value: str) -> Dict[str, str]:
    """NAME=DESCRIPTION"""
    if "=" not in value:
        raise click.BadParameter(f"expected NAME=DESCRIPTION, got {value!r}", param_hint="--param")
    name, description = value.split("=", 1)
    return {"name": name.strip(), "description": description.strip()}


def parse_example(value: str) -> Dict[str, str]:
    """CODE=>OUTPUT (output optional)"""
    code, _, output = value.partition("=>")
    return {"code": code.strip(), "output": output.strip()}


def build_payload(
    from_json: Optional[Path],
    name: Optional[str],
    category: Optional[str],
    description: Optional[str],
    syntax: Optional[str],
    return_value: Optional[str],
    params: Tuple[str, ...],
    examples: Tuple[str, ...],
) -> Dict[str, Any]:
    """Merge a JSON file (if any) with the explicitly given options"""
    payload: Dict[str, Any] = {}
    if from_json is not None:
        try:
            loaded = json.loads(from_json.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"invalid JSON: {e}", param_hint="--from-json")
        if not isinstance(loaded, dict):
            raise click.BadParameter("must contain a JSON object", param_hint="--from-json")
        payload.update(loaded)

    scalars = {
        "name": name,
        "category": category,
        "description": description,
        "syntax": syntax,
        "returnValue": return_value,
    }
    payload.update({k: v for k, v in scalars.items() if v is not None})
    if params:
        payload["parameters"] = [parse_param(p) for p in params]
    if examples:
        payload["examples"] = [parse_example(e) for e in examples]
    return payload


def group_by_category(methods: List[Dict[str, Any]]) -> "OrderedDict[str, List[Dict[str, Any]]]":
    """Group API results by category, keeping the server's ordering"""
    groups: "OrderedDict[str, List[Dict[str, Any]]]" = OrderedDict()
    for method in methods:
        groups.setdefault(method["category"], []).append(method)
    return groups


def _method_options(func):
    options = [
        click.option("--from-json", type=click.Path(exists=True, dir_okay=False, path_type=Path),
                     help="JSON object with method fields"),
        click.option("--name", help="Method name, e.g. map"),
        click.option("--category", type=click.Choice(Category.values()), help="Method category"),
        click.option("--description", help="Description (markdown)"),
        click.option("--syntax", help="Syntax line"),
        click.option("--return-value", help="Return value (markdown)"),
        click.option("--param", "params", multiple=True, metavar="NAME=DESCRIPTION",
                     help="Parameter (repeatable, order kept)"),
        click.option("--example", "examples", multiple=True, metavar="CODE=>OUTPUT",
                     help="Example (repeatable, order kept)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group(name="methods")
def methods_group():
    """Browse and edit method records through the API."""
    pass


@methods_group.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool):
    """List methods grouped by category."""
    try:
        methods = get_client(ctx).list_methods()
    except ClientError as e:
        _fail(ctx, e)
        return

    if as_json:
        click.echo(json.dumps(methods, indent=2))
        return

    if not methods:
        console.print("No methods documented yet.")
        return

    for category, items in group_by_category(methods).items():
        table = Table(title=category, title_justify="left", show_lines=False)
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Method", style="cyan")
        table.add_column("Updated", style="dim")
        for method in items:
            table.add_row(method["id"], f"{method['name']}()", method["updatedAt"][:10])
        console.print(table)


@methods_group.command(name="show")
@click.argument("method_id")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def show_cmd(ctx: click.Context, method_id: str, as_json: bool):
    """Show one method in full."""
    try:
        method = get_client(ctx).get_method(method_id)
    except ClientError as e:
        _fail(ctx, e)
        return

    if as_json:
        click.echo(json.dumps(method, indent=2))
        return

    console.print(f"[bold]{method['name']}() Method[/bold]  [dim]{method['category']} · "
                  f"Last Updated: {method['updatedAt'][:10]}[/dim]")
    console.print(Markdown(method["description"]))

    if method.get("syntax"):
        console.print(Panel(method["syntax"], title="Syntax", title_align="left"))

    if method.get("parameters"):
        table = Table(title="Parameters", title_justify="left")
        table.add_column("Name", style="bold")
        table.add_column("Description")
        for param in method["parameters"]:
            table.add_row(param["name"], param["description"])
        console.print(table)

    if method.get("returnValue"):
        console.print(Panel(Markdown(method["returnValue"]), title="Return Value", title_align="left"))

    for index, example in enumerate(method.get("examples") or [], start=1):
        console.print(Panel(Syntax(example["code"], "javascript"), title=f"Example {index}",
                            title_align="left"))
        if example.get("output"):
            console.print(f"[dim]Output:[/dim] {example['output']}")


@methods_group.command(name="add")
@_method_options
@click.pass_context
def add_cmd(ctx: click.Context, from_json, name, category, description, syntax, return_value,
            params, examples):
    """Create a method."""
    payload = build_payload(from_json, name, category, description, syntax, return_value,
                            params, examples)
    try:
        method = get_client(ctx).create_method(payload)
    except ClientError as e:
        _fail(ctx, e)
        return
    console.print(f"[green]✓ Method added: {method['name']} ({method['id']})[/green]")


@methods_group.command(name="edit")
@click.argument("method_id")
@_method_options
@click.option("--clear-params", is_flag=True, help="Remove all parameters")
@click.option("--clear-examples", is_flag=True, help="Remove all examples")
@click.pass_context
def edit_cmd(ctx: click.Context, method_id, from_json, name, category, description, syntax,
             return_value, params, examples, clear_params, clear_examples):
    """Update a method; only the given fields change."""
    payload = build_payload(from_json, name, category, description, syntax, return_value,
                            params, examples)
    if clear_params:
        payload["parameters"] = []
    if clear_examples:
        payload["examples"] = []
    if not payload:
        raise click.UsageError("Nothing to update: give at least one field option")

    try:
        method = get_client(ctx).update_method(method_id, payload)
    except ClientError as e:
        _fail(ctx, e)
        return
    console.print(f"[green]✓ Method updated: {method['name']} ({method['id']})[/green]")


@methods_group.command(name="delete")
@click.argument("method_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_cmd(ctx: click.Context, method_id: str, yes: bool):
    """Delete a method."""
    if not yes:
        click.confirm(f"Delete method {method_id}?", abort=True)
    try:
        result = get_client(ctx).delete_method(method_id)
    except ClientError as e:
        _fail(ctx, e)
        return
    console.print(f"[green]✓ {result['message']}[/green]")
