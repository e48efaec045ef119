"""Command-line interface for factorio-mod-tool."""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .errors import ErrorKind, FatalRunError, RunContext, parse_error_kind
from .service import ModToolService, RunPlan, RunResult, error_summary
from .settings import (
    EXE_FILENAME,
    PLAYER_DATA_FILENAME,
    SETTINGS_ENV_VAR,
    InvalidPathError,
    RuntimeSettings,
    SettingsError,
    default_settings_path,
    read_credentials,
    read_settings,
    validate_exe_path,
    validate_read_write_path,
    write_settings,
)

console = Console()


def _parse_kinds(values: tuple[str, ...], option: str) -> frozenset[ErrorKind]:
    kinds = set()
    for value in values:
        try:
            kinds.add(parse_error_kind(value))
        except ValueError:
            console.print(f"[red]Error:[/red] For option {option} requested an error code, got {value}.")
            sys.exit(int(ErrorKind.INVALID_OPTION))
    return frozenset(kinds)


@click.group()
@click.option(
    "--settings",
    "settings_path",
    envvar=SETTINGS_ENV_VAR,
    type=click.Path(path_type=Path),
    help=f"Settings file (default ./factoriomodtool.settings, or set {SETTINGS_ENV_VAR})",
)
@click.option(
    "--ignore-error",
    "ignore_errors",
    multiple=True,
    metavar="CODE",
    help="Do not report errors with this code. Fatal errors still exit.",
)
@click.option(
    "--fatal-error",
    "fatal_errors",
    multiple=True,
    metavar="CODE",
    help="Treat errors with this code as fatal.",
)
@click.option("--crybaby", is_flag=True, help="Every error is fatal.")
@click.option("-s", "--silent", is_flag=True, help="Do not print progress into console.")
@click.pass_context
def main(
    ctx: click.Context,
    settings_path: Path | None,
    ignore_errors: tuple[str, ...],
    fatal_errors: tuple[str, ...],
    crybaby: bool,
    silent: bool,
) -> None:
    """Manage Factorio mods: install, remove, enable and disable."""
    ctx.ensure_object(dict)
    ctx.obj["settings_path"] = settings_path
    ctx.obj["ignored"] = _parse_kinds(ignore_errors, "--ignore-error")
    ctx.obj["fatal"] = _parse_kinds(fatal_errors, "--fatal-error")
    ctx.obj["strict"] = crybaby
    ctx.obj["silent"] = silent


def _run_context(ctx: click.Context) -> RunContext:
    return RunContext(
        ignored=ctx.obj["ignored"],
        fatal=ctx.obj["fatal"],
        strict=ctx.obj["strict"],
        console=Console(quiet=ctx.obj["silent"]),
    )


def _build_service(ctx: click.Context, run_ctx: RunContext) -> ModToolService:
    """Read settings and credentials, exiting on a broken setup."""
    try:
        settings = read_settings(ctx.obj["settings_path"])
        mods_dir = settings.mods_path
        credentials = read_credentials(settings.player_data_path)
    except SettingsError as e:
        try:
            run_ctx.report(ErrorKind.MISSING_REQUIRED_PATH, "settings", str(e))
        except FatalRunError as fatal:
            sys.exit(fatal.exit_code)

    return ModToolService(
        mods_dir,
        ctx=run_ctx,
        credentials=credentials,
        show_progress=not ctx.obj["silent"],
    )


def _run_plan(ctx: click.Context, plan: RunPlan, get_mods: bool = False) -> RunResult:
    run_ctx = _run_context(ctx)
    out = run_ctx.console

    if plan.disable_all:
        out.print("[yellow]Warning:[/yellow] --disable-all also disables the base mod.")

    service = _build_service(ctx, run_ctx)
    out.print(f"[bold]Mods directory:[/bold] {service.mods_dir}")

    def on_progress(event: str, pct: float, msg: str) -> None:
        out.print(f"[dim]{msg}[/dim]")

    try:
        result = service.apply(plan, on_progress=on_progress)
    except FatalRunError as e:
        sys.exit(e.exit_code)

    _print_summary(out, result, run_ctx)
    out.print(f"[dim]Mod list saved to {result.mod_list_path}[/dim]")

    if get_mods:
        click.echo(" ".join(service.list_enabled()))
    return result


def _print_summary(out: Console, result: RunResult, run_ctx: RunContext) -> None:
    for name in result.removed:
        out.print(f"  [red]-[/red] {name}")
    for name in result.installed:
        out.print(f"  [green]+[/green] {name}")
    if result.enabled:
        out.print(f"[bold]Enabled:[/bold] {', '.join(result.enabled)}")
    if result.disabled:
        out.print(f"[bold]Disabled:[/bold] {', '.join(result.disabled)}")

    if result.error_count:
        counts = error_summary(run_ctx.records)
        details = ", ".join(f"{kind}: {n}" for kind, n in counts.items())
        out.print(f"[yellow]{result.error_count} errors recorded.[/yellow] [dim]({details})[/dim]")
    else:
        out.print("[green]0 errors recorded.[/green]")


@main.command()
@click.option("-e", "--enable", "to_enable", multiple=True, metavar="MOD_ID", help="Enable mod MOD_ID.")
@click.option("-d", "--disable", "to_disable", multiple=True, metavar="MOD_ID", help="Disable mod MOD_ID.")
@click.option(
    "-i",
    "--install",
    "--download",
    "to_install",
    multiple=True,
    metavar="MOD_ID",
    help="Download a mod from the mod portal by name or mod page URL.",
)
@click.option(
    "-r",
    "--remove",
    "--uninstall",
    "to_remove",
    multiple=True,
    metavar="MOD_ID",
    help="Remove downloaded MOD_ID.",
)
@click.option("--redownload", "to_redownload", multiple=True, metavar="MOD_ID", help="Redownload MOD_ID.")
@click.option("--disable-all", is_flag=True, help="Disable all mods (beware: disables base mod).")
@click.option("--get-mods", is_flag=True, help="Output all enabled mods in a string.")
@click.option("-c", "--no-compatibility", is_flag=True, help="Accepted for compatibility; no effect.")
@click.option("-D", "--no-dependency", is_flag=True, help="Accepted for compatibility; no effect.")
@click.option("-f", "--force-checks", is_flag=True, help="Accepted for compatibility; no effect.")
@click.pass_context
def apply(
    ctx: click.Context,
    to_enable: tuple[str, ...],
    to_disable: tuple[str, ...],
    to_install: tuple[str, ...],
    to_remove: tuple[str, ...],
    to_redownload: tuple[str, ...],
    disable_all: bool,
    get_mods: bool,
    no_compatibility: bool,
    no_dependency: bool,
    force_checks: bool,
) -> None:
    """
    Apply several operations in one run.

    Removals and installs happen first, then the mods are rescanned, then
    mods are disabled and enabled, and mod-list.json is written once.
    """
    plan = RunPlan(
        enable=list(to_enable),
        disable=list(to_disable),
        install=list(to_install),
        remove=list(to_remove),
        redownload=list(to_redownload),
        disable_all=disable_all,
    )
    if plan.is_empty and not get_mods:
        click.echo(ctx.get_help())
        return
    _run_plan(ctx, plan, get_mods=get_mods)


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def enable(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Enable installed mods."""
    _run_plan(ctx, RunPlan(enable=list(names)))


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def disable(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Disable installed mods."""
    _run_plan(ctx, RunPlan(disable=list(names)))


@main.command(name="disable-all")
@click.pass_context
def disable_all(ctx: click.Context) -> None:
    """Disable every mod, including base."""
    _run_plan(ctx, RunPlan(disable_all=True))


@main.command()
@click.argument("identifiers", nargs=-1, required=True)
@click.pass_context
def install(ctx: click.Context, identifiers: tuple[str, ...]) -> None:
    """
    Download mods from the mod portal.

    IDENTIFIERS: mod names or mod page URLs, e.g. Krastorio2 or
    https://mods.factorio.com/mod/Krastorio2
    """
    _run_plan(ctx, RunPlan(install=list(identifiers)))


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def remove(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Delete the archives of installed mods."""
    _run_plan(ctx, RunPlan(remove=list(names)))


@main.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def redownload(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Remove mods and download their latest release again."""
    _run_plan(ctx, RunPlan(redownload=list(names)))


@main.command(name="list")
@click.option("--plain", is_flag=True, help="Print enabled mod names on one line.")
@click.pass_context
def list_mods(ctx: click.Context, plain: bool) -> None:
    """Show installed mods without changing anything."""
    run_ctx = _run_context(ctx)
    service = _build_service(ctx, run_ctx)

    try:
        service.load()
    except FatalRunError as e:
        sys.exit(e.exit_code)

    if plain:
        click.echo(" ".join(service.list_enabled()))
        return

    table = Table(title="Mods")
    table.add_column("Mod", style="cyan")
    table.add_column("Version", style="blue")
    table.add_column("Archive", style="dim")
    table.add_column("Status")

    for entry in service.entries():
        table.add_row(
            entry.name[:40],
            entry.version or "-",
            entry.archive or "-",
            "[green]Enabled[/green]" if entry.enabled else "[red]Disabled[/red]",
        )

    run_ctx.console.print(table)


def _ask_path(prompt: str, given: str | None, validate) -> str:
    """Validate a given path, or keep prompting until a valid one is entered."""
    if given is not None:
        try:
            return validate(given)
        except InvalidPathError as e:
            console.print(f"[red]ERROR {int(ErrorKind.INVALID_PATH)}:[/red] {e}")
            sys.exit(int(ErrorKind.INVALID_PATH))

    while True:
        value = click.prompt(prompt)
        try:
            return validate(value)
        except InvalidPathError as e:
            console.print(f"[red]ERROR {int(ErrorKind.INVALID_PATH)}:[/red] {e}")


@main.command()
@click.option("--exe-path", default=None, help=f"Path to {EXE_FILENAME}")
@click.option("--read-write-path", default=None, help=f"Path to {PLAYER_DATA_FILENAME}")
@click.pass_context
def setup(ctx: click.Context, exe_path: str | None, read_write_path: str | None) -> None:
    """Record the game paths in the settings file."""
    console.print("[bold]Factorio Mod Tool - Setup[/bold]\n")

    exe = _ask_path(
        f"Factorio executable path (ends with Factorio/bin/x64/{EXE_FILENAME})",
        exe_path,
        validate_exe_path,
    )
    read_write = _ask_path(
        f"Factorio read/write path (path to {PLAYER_DATA_FILENAME}, commonly "
        f"%AppData%/Factorio/{PLAYER_DATA_FILENAME})",
        read_write_path,
        validate_read_write_path,
    )

    console.print("[dim]Writing paths to a settings file...[/dim]")
    path = write_settings(
        RuntimeSettings(exe_path=exe, read_write_path=read_write),
        ctx.obj["settings_path"] or default_settings_path(),
    )
    console.print(f"[green]Settings saved to {path}[/green]")


@main.command()
@click.option("--port", type=int, default=5000, help="Port (default 5000)")
@click.pass_context
def web(ctx: click.Context, port: int) -> None:
    """Serve the JSON API on localhost."""
    from .web import create_and_run

    create_and_run(settings_path=ctx.obj["settings_path"], port=port)


if __name__ == "__main__":
    main()
