"""
Main CLI entry point for sandbox-cli.

This module defines the command-line interface using Typer, providing
commands to create, clone, inspect, update and delete sandboxes and to run
the sandbox client against the current sandbox.
"""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from sandbox_cli.config import EdgeRcSettings
from sandbox_cli.operations.parsing import parse_hostname_csv, parse_to_boolean
from sandbox_cli.runtime.client_runtime import ClientRuntime
from sandbox_cli.runtime.create_runtime import CreateRuntime
from sandbox_cli.runtime.delete_runtime import DeleteRuntime
from sandbox_cli.runtime.show_runtime import ShowRuntime
from sandbox_cli.runtime.update_runtime import UpdateRuntime
from sandbox_cli.utils.utils import to_json_pretty

# Initialize rich console for beautiful output
console = Console()

# Create the main Typer application
app = typer.Typer(
    name="sandbox",
    help="Sandbox CLI - create and manage sandboxes and run the sandbox client",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@dataclass
class CliState:
    """Per-invocation options shared by every command."""
    settings: EdgeRcSettings
    verbose: bool = False


def _state(ctx: typer.Context) -> CliState:
    if ctx.obj is None:
        ctx.obj = CliState(settings=EdgeRcSettings())
    return ctx.obj


@contextmanager
def spinner(description: str):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        yield progress


def _fail(action: str, error: Exception, verbose: bool) -> None:
    console.print(f"❌ Error {action}: [red]{escape(str(error))}[/red]")
    if verbose:
        import traceback
        console.print(traceback.format_exc())
    raise typer.Exit(1)


def _prompt_pass_through(origins: List[str]) -> bool:
    console.print("Detected the following origins:")
    for origin in origins:
        console.print(f"  • [blue]{escape(origin)}[/blue]")
    return typer.confirm(
        "Would you like the sandbox client to pass-through requests to these origins?",
        default=False,
    )


def _paused_prompt(progress: Progress) -> Callable[[List[str]], bool]:
    """Wrap the pass-through prompt so the spinner does not redraw over it."""
    def prompt(origins: List[str]) -> bool:
        progress.stop()
        try:
            return _prompt_pass_through(origins)
        finally:
            progress.start()
    return prompt


def _print_registration(result: dict) -> None:
    console.print(
        f"✅ Successfully created sandbox_id [bold green]{escape(result['sandbox_id'])}[/bold green]. "
        f"Generated sandbox client configuration at [blue]{escape(result['config_path'])}[/blue] "
        "please edit this file"
    )


# Version callback
def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        from sandbox_cli import __version__
        console.print(f"Sandbox CLI version: [bold green]{__version__}[/bold green]")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    edgerc: Optional[str] = typer.Option(
        None,
        "--edgerc",
        help="Use this edgerc file for API calls",
    ),
    section: Optional[str] = typer.Option(
        None,
        "--section",
        help="Use this section in the edgerc file",
    ),
    account_key: Optional[str] = typer.Option(
        None,
        "--accountkey",
        help="Account switch key for multi-account API clients",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Show debug information",
    ),
) -> None:
    """Sandbox CLI - a developer tool for sandbox lifecycle management."""
    settings = EdgeRcSettings(account_key=account_key, debug=debug)
    if edgerc:
        settings.path = os.path.expanduser(edgerc)
    if section:
        settings.section = section

    ctx.obj = CliState(settings=settings, verbose=debug)
    if debug:
        logging.basicConfig(level=logging.DEBUG)


@app.command()
def install(ctx: typer.Context) -> None:
    """
    Download and install the sandbox client software.
    """
    state = _state(ctx)
    try:
        with spinner("Checking for Sandbox Client..."):
            result = ClientRuntime(verbose=state.verbose).install()
    except Exception as e:
        _fail("installing sandbox client", e, state.verbose)

    if result["action"] == "up_to_date":
        console.print(f"✅ Sandbox Client is up to date: [bold green]{result['version']}[/bold green]")
    else:
        console.print(f"✅ Sandbox Client {result['action']}: [bold green]{result['version']}[/bold green]")


@app.command("list")
def list_sandboxes(
    ctx: typer.Context,
    remote: bool = typer.Option(
        False,
        "-r",
        "--remote",
        help="Show sandboxes from the server",
    ),
) -> None:
    """
    List sandboxes that you have managed locally.
    """
    state = _state(ctx)
    try:
        runtime = ShowRuntime(settings=state.settings, verbose=state.verbose)
        if remote:
            with spinner("Loading sandboxes..."):
                sandboxes = runtime.list_remote()
        else:
            sandboxes = runtime.list_local()
    except Exception as e:
        _fail("listing sandboxes", e, state.verbose)

    table = Table(title="Remote sandboxes" if remote else "Local sandboxes")
    if remote:
        table.add_column("Has Local", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Sandbox ID", style="blue")
        table.add_column("Status")
        for sb in sandboxes:
            table.add_row("Y" if sb["has_local"] else "N", sb["name"], sb["sandbox_id"], sb["status"])
    else:
        table.add_column("Current", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Sandbox ID", style="blue")
        for sb in sandboxes:
            table.add_row("YES" if sb["current"] else "", sb["name"], sb["sandbox_id"])

    console.print(table)


app.command("ls", hidden=True)(list_sandboxes)


@app.command()
def show(
    ctx: typer.Context,
    sandbox_identifier: Optional[str] = typer.Argument(None, help="Sandbox id or name, defaults to the current sandbox"),
) -> None:
    """
    Show details about a sandbox.
    """
    state = _state(ctx)
    try:
        with spinner("Loading sandbox..."):
            details = ShowRuntime(settings=state.settings, verbose=state.verbose).show(sandbox_identifier)
    except Exception as e:
        _fail("showing sandbox", e, state.verbose)

    local = details["local"]
    if local:
        table = Table(title="Local sandbox information")
        table.add_column("Property", style="cyan")
        table.add_column("Value", style="green")
        table.add_row("Sandbox ID", details["sandbox_id"])
        table.add_row("Local directory", local["sandboxFolder"])
        table.add_row("Current", str(local["isCurrent"]))
        jwt_info = details["jwt"]
        if jwt_info and jwt_info["expires_at"]:
            expiry = jwt_info["expires_at"].strftime("%Y-%m-%d %H:%M:%S %Z")
            table.add_row("JWT expires", f"{expiry} (expired)" if jwt_info["expired"] else expiry)
        console.print(table)

    remote = details["remote"] or {}
    table = Table(title="Detailed Info")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Name", str(remote.get("name", "N/A")))
    table.add_row("Created By", str(remote.get("createdBy", "N/A")))
    table.add_row("Is Clonable", str(remote.get("isClonable", "N/A")))
    table.add_row("Status", str(remote.get("status", "N/A")))
    console.print(table)

    table = Table(title="Sandbox Properties")
    table.add_column("Sandbox Property ID", style="cyan")
    table.add_column("Request Hostname(s)", style="green")
    for prop in remote.get("properties", []):
        table.add_row(str(prop.get("sandboxPropertyId")), ", ".join(prop.get("requestHostnames", [])))
    console.print(table)


@app.command()
def rules(
    ctx: typer.Context,
    sandbox_identifier: Optional[str] = typer.Argument(None, help="Sandbox id or name, defaults to the current sandbox"),
) -> None:
    """
    Show PAPI rules for a sandbox.
    """
    state = _state(ctx)
    try:
        with spinner("Loading rules..."):
            rules_list = ShowRuntime(settings=state.settings, verbose=state.verbose).get_rules(sandbox_identifier)
    except Exception as e:
        _fail("loading rules", e, state.verbose)

    for entry in rules_list:
        console.rule(escape(entry["title"]))
        console.print_json(to_json_pretty(entry["rules"]))


@app.command()
def use(
    ctx: typer.Context,
    sandbox_identifier: str = typer.Argument(..., help="Sandbox id or name"),
) -> None:
    """
    Set the sandbox as the currently active sandbox.
    """
    state = _state(ctx)
    try:
        result = ShowRuntime(settings=state.settings, verbose=state.verbose).use(sandbox_identifier)
    except Exception as e:
        _fail("selecting sandbox", e, state.verbose)

    console.print(f"✅ Sandbox: [bold green]{escape(result['name'])}[/bold green] is now active")


@app.command()
def delete(
    ctx: typer.Context,
    sandbox_identifier: str = typer.Argument(..., help="Sandbox id or name"),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Do not ask for confirmation",
    ),
) -> None:
    """
    Delete a sandbox remotely and remove its local files.
    """
    state = _state(ctx)
    try:
        runtime = DeleteRuntime(settings=state.settings, verbose=state.verbose)
        target = runtime.resolve_target(sandbox_identifier)
    except Exception as e:
        _fail("deleting sandbox", e, state.verbose)

    if not force and not typer.confirm("are you sure you want to delete this sandbox?"):
        return

    try:
        description = f"deleting sandboxId: {target['sandbox_id']}"
        if target["name"]:
            description += f" name: {target['name']}"
        with spinner(description):
            result = runtime.delete(sandbox_identifier)
    except Exception as e:
        _fail("deleting sandbox", e, state.verbose)

    console.print(f"✅ Deleted sandbox_id: [bold green]{escape(result['sandbox_id'])}[/bold green]")
    if result.get("local_files_removed"):
        console.print("🧹 Removed local files")


@app.command()
def create(
    ctx: typer.Context,
    rules: Optional[str] = typer.Option(None, "-r", "--rules", help="PAPI json file"),
    property_specifier: Optional[str] = typer.Option(
        None,
        "-p",
        "--property",
        help="Property to use: <property_id | hostname>[:version]. If no version is specified the latest will be used.",
    ),
    clonable: Optional[str] = typer.Option(None, "-c", "--clonable", help="Make this sandbox clonable (Y/N)"),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Name of sandbox"),
    request_hostnames: Optional[str] = typer.Option(
        None,
        "-H",
        "--requesthostnames",
        help="Comma separated list of request hostnames",
    ),
    recipe: Optional[str] = typer.Option(None, "--recipe", help="Path to recipe json file"),
    pass_through: Optional[bool] = typer.Option(
        None,
        "--pass-through/--no-pass-through",
        help="Map detected origins to pass-through instead of a placeholder target",
    ),
) -> None:
    """
    Create a new sandbox.
    """
    state = _state(ctx)
    try:
        runtime = CreateRuntime(settings=state.settings, verbose=state.verbose)
        with spinner("creating new sandbox") as progress:
            if recipe:
                result = runtime.create_from_recipe(
                    recipe,
                    pass_through=pass_through,
                    pass_through_prompt=None if pass_through is not None else _paused_prompt(progress),
                )
            else:
                result = runtime.create(
                    name=name,
                    request_hostnames=parse_hostname_csv(request_hostnames or ""),
                    rules_path=rules,
                    property_specifier=property_specifier,
                    is_clonable=parse_to_boolean(clonable) if clonable else False,
                    pass_through=pass_through,
                    pass_through_prompt=_paused_prompt(progress),
                )
    except Exception as e:
        _fail("creating sandbox", e, state.verbose)

    _print_registration(result)


@app.command()
def clone(
    ctx: typer.Context,
    sandbox_identifier: str = typer.Argument(..., help="Sandbox id or name"),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Name of sandbox"),
    pass_through: Optional[bool] = typer.Option(
        None,
        "--pass-through/--no-pass-through",
        help="Map detected origins to pass-through instead of a placeholder target",
    ),
) -> None:
    """
    Clone a sandbox.
    """
    state = _state(ctx)
    try:
        runtime = CreateRuntime(settings=state.settings, verbose=state.verbose)
        sandbox_id = runtime.client_manager.resolve_sandbox_id(sandbox_identifier)
        with spinner(f"cloning sandbox_id: {sandbox_id}") as progress:
            result = runtime.clone(
                sandbox_id,
                name,
                pass_through=pass_through,
                pass_through_prompt=_paused_prompt(progress),
            )
    except Exception as e:
        _fail("cloning sandbox", e, state.verbose)

    _print_registration(result)


@app.command("sync-sandbox")
def sync_sandbox(
    ctx: typer.Context,
    sandbox_id: str = typer.Argument(..., help="Sandbox id"),
    jwt: str = typer.Argument(..., help="JWT of the sandbox"),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Local name, defaults to the remote sandbox name"),
    pass_through: Optional[bool] = typer.Option(
        None,
        "--pass-through/--no-pass-through",
        help="Map detected origins to pass-through instead of a placeholder target",
    ),
) -> None:
    """
    Register an existing sandbox on this machine.
    """
    state = _state(ctx)
    try:
        runtime = CreateRuntime(settings=state.settings, verbose=state.verbose)
        with spinner(f"syncing sandbox_id: {sandbox_id}") as progress:
            result = runtime.sync(
                sandbox_id,
                jwt,
                name=name,
                pass_through=pass_through,
                pass_through_prompt=_paused_prompt(progress),
            )
    except Exception as e:
        _fail("syncing sandbox", e, state.verbose)

    _print_registration(result)


@app.command("add-property")
def add_property(
    ctx: typer.Context,
    sandbox_identifier: Optional[str] = typer.Argument(None, help="Sandbox id or name, defaults to the current sandbox"),
    rules: Optional[str] = typer.Option(None, "-r", "--rules", help="PAPI json file"),
    property_specifier: Optional[str] = typer.Option(
        None,
        "-p",
        "--property",
        help="Property to use: <property_id | hostname>[:version]",
    ),
    request_hostnames: Optional[str] = typer.Option(
        None,
        "-H",
        "--requesthostnames",
        help="Comma separated list of request hostnames",
    ),
) -> None:
    """
    Add a property to a sandbox.
    """
    state = _state(ctx)
    try:
        runtime = CreateRuntime(settings=state.settings, verbose=state.verbose)
        sandbox_id = runtime.client_manager.resolve_sandbox_id(sandbox_identifier)
        with spinner(f"adding sandbox property to {sandbox_id}"):
            result = runtime.add_property(
                sandbox_id,
                parse_hostname_csv(request_hostnames or ""),
                rules_path=rules,
                property_specifier=property_specifier,
            )
    except Exception as e:
        _fail("adding property", e, state.verbose)

    prop_id = (result or {}).get("sandboxPropertyId", "N/A")
    console.print(f"✅ Added sandbox_property_id: [bold green]{prop_id}[/bold green] to sandbox_id: {sandbox_id}")


@app.command()
def update(
    ctx: typer.Context,
    sandbox_identifier: Optional[str] = typer.Argument(None, help="Sandbox id or name, defaults to the current sandbox"),
    rules: Optional[str] = typer.Option(None, "-r", "--rules", help="PAPI json file"),
    clonable: Optional[str] = typer.Option(None, "-c", "--clonable", help="Make this sandbox clonable (Y/N)"),
    name: Optional[str] = typer.Option(None, "-n", "--name", help="Name of sandbox"),
    request_hostnames: Optional[str] = typer.Option(
        None,
        "-H",
        "--requesthostnames",
        help="Comma separated list of request hostnames",
    ),
) -> None:
    """
    Update a sandbox.
    """
    state = _state(ctx)
    try:
        runtime = UpdateRuntime(settings=state.settings, verbose=state.verbose)
        with spinner("updating sandbox"):
            result = runtime.update(
                sandbox_identifier,
                rules_path=rules,
                clonable=clonable,
                name=name,
                request_hostnames=parse_hostname_csv(request_hostnames) if request_hostnames else None,
            )
    except Exception as e:
        _fail("updating sandbox", e, state.verbose)

    console.print(f"✅ Successfully updated sandbox_id: [bold green]{escape(result['sandbox_id'])}[/bold green]")


@app.command("update-property")
def update_property(
    ctx: typer.Context,
    sandbox_id: str = typer.Argument(..., help="Sandbox id"),
    sandbox_property_id: str = typer.Argument(..., help="Sandbox property id"),
    rules: Optional[str] = typer.Option(None, "-r", "--rules", help="PAPI json file"),
    request_hostnames: Optional[str] = typer.Option(
        None,
        "-H",
        "--requesthostnames",
        help="Comma separated list of request hostnames",
    ),
) -> None:
    """
    Update a sandbox property.
    """
    state = _state(ctx)
    try:
        runtime = UpdateRuntime(settings=state.settings, verbose=state.verbose)
        with spinner(f"updating sandboxPropertyId: {sandbox_property_id}"):
            runtime.update_hostnames_and_rules(
                sandbox_id,
                sandbox_property_id,
                request_hostnames=parse_hostname_csv(request_hostnames) if request_hostnames else None,
                rules_path=rules,
            )
    except Exception as e:
        _fail("updating property", e, state.verbose)

    console.print(
        f"✅ Successfully updated sandbox_id: [bold green]{escape(sandbox_id)}[/bold green] "
        f"sandbox_property_id: [bold green]{escape(sandbox_property_id)}[/bold green]"
    )


@app.command("rotate-jwt")
def rotate_jwt(
    ctx: typer.Context,
    sandbox_identifier: Optional[str] = typer.Argument(None, help="Sandbox id or name, defaults to the current sandbox"),
) -> None:
    """
    Rotate the JWT of a sandbox and store it in the local configuration.
    """
    state = _state(ctx)
    try:
        runtime = UpdateRuntime(settings=state.settings, verbose=state.verbose)
        with spinner("rotating JWT"):
            result = runtime.rotate_jwt(sandbox_identifier)
    except Exception as e:
        _fail("rotating JWT", e, state.verbose)

    console.print(f"✅ Rotated JWT for sandbox_id: [bold green]{escape(result['sandbox_id'])}[/bold green]")


@app.command()
def start(
    ctx: typer.Context,
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Print logs to standard output",
    ),
) -> None:
    """
    Start the sandbox client for the current sandbox.
    """
    state = _state(ctx)
    try:
        runtime = ClientRuntime(verbose=state.verbose)
        with spinner("Checking for Sandbox Client..."):
            startup_info = runtime.prepare_start(print_logs=print_logs)
    except Exception as e:
        _fail("starting sandbox client", e, state.verbose)

    if startup_info is None:
        console.print("there are no sandboxes configured")
        return

    console.print("Starting Sandbox Client with arguments:")
    console.print(f"Config: [blue]{escape(startup_info['config_path'])}[/blue]")
    console.print(f"Logging path: [blue]{escape(startup_info['logging_path'])}[/blue]")
    console.print(f"Logging file: [blue]{escape(startup_info['logging_file_path'])}[/blue]")
    console.print(f"Logging config: [blue]{escape(startup_info['logging_config_path'])}[/blue]")
    console.print(f"Arguments: {escape(' '.join(startup_info['args']))}\n")

    try:
        runtime.start(startup_info)
    except Exception as e:
        _fail("running sandbox client", e, state.verbose)


if __name__ == "__main__":
    app()
