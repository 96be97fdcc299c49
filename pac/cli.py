"""pac CLI — the main entry point for the plugin manager."""

import functools

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pac import __version__
from pac.config import Settings, default_threads
from pac.errors import FormatError, PacError
from pac.models.reference import Reference, validate_commit_hash
from pac.tasks.executor import TaskOutcome
from pac.utils.logging import setup_logging

console = Console()


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PacError as e:
            raise click.ClickException(str(e)) from e

    return wrapper


def _threads(value: int | None) -> int:
    if value is not None:
        return value
    try:
        threads = default_threads()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="'--threads'")
    if threads < 1:
        raise click.BadParameter("Threads should be greater than 0", param_hint="'--threads'")
    return threads


def _check_commit(ctx, param, value):
    if value is None:
        return None
    try:
        return validate_commit_hash(value)
    except FormatError as e:
        raise click.BadParameter(str(e))


def _report(outcome: TaskOutcome) -> None:
    idname = escape(outcome.package.idname)
    message = escape(outcome.message)
    if outcome.succeeded:
        console.print(f"  [green]v[/] {idname} {message}".rstrip())
    elif outcome.skipped:
        console.print(f"  [dim]-[/] {idname}: {message}")
    elif outcome.keep:
        console.print(f"  [yellow]![/] {idname}: {message}")
    else:
        console.print(f"  [red]x[/] {idname}: {message}")


def _summary(verb: str, result) -> None:
    done = sum(1 for o in result.outcomes if o.succeeded)
    console.print(
        f"\n{verb} {done}, kept {len(result.packages)}, dropped {len(result.failed)}"
    )
    if result.failed:
        console.print(f"  [red]Dropped:[/] {escape(', '.join(sorted(result.failed)))}")


threads_option = click.option(
    "--threads",
    "-j",
    type=click.IntRange(min=1),
    default=None,
    help="Number of concurrent workers (default: number of CPUs)",
)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--vim-dir",
    envvar="VIM_CONFIG_PATH",
    default=None,
    type=click.Path(file_okay=False),
    help="Editor config directory (default: ~/.vim)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx, vim_dir: str | None, verbose: bool):
    """pac — a package manager for Vim plugins.

    Plugins are cloned into native package directories
    (pack/<category>/{start,opt}/<name>) and tracked in a packfile.
    """
    setup_logging("DEBUG" if verbose else "WARNING")
    ctx.obj = Settings.from_env(vim_dir)


# ── Install ──────────────────────────────────────────────────────────


@main.command()
@click.argument("packages", nargs=-1)
@click.option("--opt", "-o", is_flag=True, help="Install plugins as opt(ional)")
@click.option("--category", "-c", default="default", help="Install package under provided category")
@click.option("--branch", default=None, help="Checkout this branch")
@click.option("--tag", default=None, help="Checkout this tag")
@click.option("--commit", default=None, callback=_check_commit, help="Checkout this commit (full hash)")
@click.option("--as", "as_name", default=None, help="Install plugin under this name")
@click.option("--on", "load_command", default=None, help="Command for loading the plugin")
@click.option("--for", "for_types", default=None, help="Load the plugin for these filetypes (comma separated)")
@click.option("--build", "build_command", default=None, help="Build command run after cloning")
@threads_option
@click.pass_obj
@_handle_errors
def install(
    settings: Settings,
    packages: tuple,
    opt: bool,
    category: str,
    branch: str | None,
    tag: str | None,
    commit: str | None,
    as_name: str | None,
    load_command: str | None,
    for_types: str | None,
    build_command: str | None,
    threads: int | None,
):
    """Install new packages/plugins.

    PACKAGES are `owner/repo` GitHub shorthands or full git URLs. With no
    PACKAGES every package in the packfile is installed.
    """
    from pac.commands.install import build_targets, install_plugins

    given = [r for r in (branch, tag, commit) if r]
    if len(given) > 1:
        raise click.UsageError("Only one of --branch, --tag or --commit may be given")
    if as_name and len(packages) > 1:
        raise click.UsageError("Multiple plugins cannot be specified with --as")

    reference = None
    if branch:
        reference = Reference.branch(branch)
    elif tag:
        reference = Reference.tag(tag)
    elif commit:
        reference = Reference.commit(commit)

    types = [t.strip() for t in for_types.split(",") if t.strip()] if for_types else []
    targets = build_targets(
        list(packages),
        settings,
        name=as_name,
        category=category,
        opt=opt,
        reference=reference,
        load_command=load_command,
        for_types=types,
        build_command=build_command,
    )

    console.print(f"\n[bold blue]pac[/] — Installing {len(targets) or 'all'} package(s)\n")
    result = install_plugins(settings, targets, _threads(threads), reporter=_report)
    _summary("Installed", result)


# ── Update ───────────────────────────────────────────────────────────


@main.command()
@click.argument("packages", nargs=-1)
@click.option("--skip", "-s", multiple=True, help="Skip packages whose idname contains this")
@threads_option
@click.pass_obj
@_handle_errors
def update(settings: Settings, packages: tuple, skip: tuple, threads: int | None):
    """Update packages, all of them by default."""
    from pac.commands.update import update_plugins

    console.print("\n[bold blue]pac[/] — Updating packages\n")
    result = update_plugins(
        settings, list(packages), _threads(threads), skip=list(skip), reporter=_report
    )
    for idname in result.skipped:
        console.print(f"  [dim]Skip {escape(idname)}[/]")
    for name in result.missing:
        console.print(f"  [yellow]No such package:[/] {escape(name)}")
    _summary("Updated", result)


# ── Uninstall ────────────────────────────────────────────────────────


@main.command()
@click.argument("packages", nargs=-1, required=True)
@click.option("--all", "-a", "purge", is_flag=True, help="Also remove the plugin config files")
@click.pass_obj
@_handle_errors
def uninstall(settings: Settings, packages: tuple, purge: bool):
    """Uninstall packages/plugins by name."""
    from pac.commands.uninstall import uninstall_plugins

    removed = uninstall_plugins(settings, list(packages), purge=purge)
    console.print(f"\nUninstalled {escape(', '.join(p.name for p in removed))}")


# ── Move ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("package")
@click.argument("category", required=False)
@click.option("--opt", "-o", is_flag=True, help="Make package optional")
@click.pass_obj
@_handle_errors
def move(settings: Settings, package: str, category: str | None, opt: bool):
    """Move a package to a different category or make it optional."""
    from pac.commands.move import move_plugin

    if opt and category:
        raise click.UsageError("--opt cannot be combined with CATEGORY")
    if not opt and not category:
        raise click.UsageError("Give a CATEGORY or --opt")

    moved = move_plugin(settings, package, category=category, opt=opt)
    console.print(f"  [green]v[/] {escape(moved.name)} -> {escape(str(moved.path()))}")


# ── List ─────────────────────────────────────────────────────────────


@main.command(name="list")
@click.option("--start", "-s", is_flag=True, help="List start packages")
@click.option("--opt", "-o", is_flag=True, help="List optional packages")
@click.option("--detached", "-d", is_flag=True, help="List detached (untracked) packages")
@click.option("--category", "-c", default=None, help="List packages under this category")
@click.pass_obj
@_handle_errors
def list_entries(settings: Settings, start: bool, opt: bool, detached: bool, category: str | None):
    """List installed packages."""
    from pac.commands.listing import detached_dirs, list_packages

    if start and opt:
        raise click.UsageError("--start and --opt are mutually exclusive")

    if detached:
        paths = detached_dirs(settings)
        if not paths:
            console.print("[yellow]No detached packages.[/]")
        for path in paths:
            console.print(f"  {escape(str(path.relative_to(settings.pack_dir)))}")
        return

    packages = list_packages(settings, start=start, opt=opt, category=category)
    if not packages:
        console.print("[yellow]No packages installed.[/]")
        return

    table = Table(title=f"Packages ({len(packages)})")
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Type")
    table.add_column("Reference")
    table.add_column("Installed", justify="center")

    for p in packages:
        installed = "[green]Y[/]" if p.is_installed() else "[red]N[/]"
        ref = str(p.reference) if p.reference else ""
        table.add_row(escape(p.name), escape(p.category), p.bucket, escape(ref), installed)

    console.print(table)


# ── Generate ─────────────────────────────────────────────────────────


@main.command()
@click.pass_obj
@_handle_errors
def generate(settings: Settings):
    """Generate the loader file combining all package configurations."""
    from pac.commands.common import regenerate

    packages = regenerate(settings)
    console.print(f"  Wrote {escape(str(settings.loader_file))} ({len(packages)} packages)")


# ── Completions ──────────────────────────────────────────────────────


@main.command(hidden=True)
@click.argument("shell", type=click.Choice(["bash", "fish", "zsh"]))
def completions(shell: str):
    """Generate completion scripts for your shell."""
    from click.shell_completion import get_completion_class

    comp_cls = get_completion_class(shell)
    click.echo(comp_cls(main, {}, "pac", "_PAC_COMPLETE").source())


if __name__ == "__main__":
    main()
