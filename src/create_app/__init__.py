#!/usr/bin/env python3
# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "typer",
#     "rich",
#     "httpx",
#     "truststore",
# ]
# ///
"""
create-app - scaffold a new Renaissance app block from a template repository

Usage:
    uvx --from . create-app my-app
    create-app my-app --repo https://github.com/you/your-template.git
    create-app                      # prompts for the project name
"""

import sys
import tempfile
from pathlib import Path
from typing import Callable, Optional

import typer
from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text
from typer.core import TyperCommand

from .errors import InvalidProjectNameError, ProjectExistsError, TemplateFetchError
from .fetch import resolve_fetcher
from .project import DEFAULT_REPO, CreatedProject, InitRequest, ProjectInitializer
from .tracker import StepTracker

BANNER = """
╦═╗╔═╗╔╗╔╔═╗╦╔═╗╔═╗╔═╗╔╗╔╔═╗╔═╗
╠╦╝║╣ ║║║╠═╣║╚═╗╚═╗╠═╣║║║║  ║╣
╩╚═╚═╝╝╚╝╩ ╩╩╚═╝╚═╝╩ ╩╝╚╝╚═╝╚═╝
"""

TAGLINE = "Create Renaissance App Block"

NEXT_STEPS = ["yarn install", "yarn dev"]

console = Console()


class BannerCommand(TyperCommand):
    """Command that shows the banner before help."""

    def format_help(self, ctx, formatter):
        show_banner()
        super().format_help(ctx, formatter)


app = typer.Typer(
    name="create-app",
    help="Scaffold a new project from a template repository",
    add_completion=False,
)


def show_banner():
    """Display the ASCII art banner."""
    banner_lines = BANNER.strip().split('\n')
    colors = ["bright_cyan", "cyan", "blue"]

    styled_banner = Text()
    for i, line in enumerate(banner_lines):
        styled_banner.append(line + "\n", style=colors[i % len(colors)])

    console.print(Align.center(styled_banner))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


def prompt_line(question: str) -> str:
    """Read one line from standard input. End of input counts as an empty answer."""
    try:
        return console.input(question).strip()
    except EOFError:
        console.print()
        return ""


def split_arguments(tokens: list[Optional[str]]) -> tuple[Optional[str], list[str]]:
    """Separate the project name from unrecognised flags.

    The last bare token wins as the project name; anything that looks like a
    flag is returned so the caller can report it as ignored.
    """
    words = [t for t in tokens if t is not None]
    ignored = [t for t in words if t.startswith("-")]
    names = [t for t in words if not t.startswith("-")]
    return (names[-1] if names else None), ignored


def _debug_panel(temp_root: Path) -> Panel:
    _env_pairs = [
        ("Python", sys.version.split()[0]),
        ("Platform", sys.platform),
        ("CWD", str(Path.cwd())),
        ("Temp root", str(temp_root)),
    ]
    _label_width = max(len(k) for k, _ in _env_pairs)
    env_lines = [f"{k.ljust(_label_width)} → [bright_black]{v}[/bright_black]" for k, v in _env_pairs]
    return Panel("\n".join(env_lines), title="Debug Environment", border_style="magenta")


def _print_next_steps(created: CreatedProject):
    steps_lines = [f"1. Go to the project folder: [cyan]cd {created.name}[/cyan]"]
    for step_num, command in enumerate(NEXT_STEPS, start=2):
        steps_lines.append(f"{step_num}. [cyan]{command}[/cyan]")

    console.print()
    console.print(f"[bold green]Success![/bold green] Created {created.name} at [green]{escape(str(created.path))}[/green]")
    if created.env_file:
        console.print(f"[green]✓[/green] Created {created.env_file.name} from env.example")
    console.print()
    console.print(Panel("\n".join(steps_lines), title="Next Steps", border_style="cyan", padding=(1, 2)))
    console.print("[yellow]Happy coding![/yellow]")


def run(
    request: InitRequest,
    *,
    cwd: Path,
    temp_root: Path,
    skip_tls: bool = False,
    github_token: Optional[str] = None,
    debug: bool = False,
    prompt: Callable[[str], str] = prompt_line,
) -> CreatedProject:
    """Create a project for ``request``, prompting for a name when none was given.

    Failures are reported on the console and end with ``typer.Exit(1)``.
    """
    project_name = request.project_name
    if not project_name:
        project_name = prompt("[cyan]?[/cyan] What is your project named? ")
        request = InitRequest(project_name=project_name, source=request.source)

    fetcher = resolve_fetcher(request.source, skip_tls=skip_tls, github_token=github_token)
    initializer = ProjectInitializer(fetcher, cwd=cwd, temp_root=temp_root)

    try:
        project_path = initializer.resolve(request.project_name)
    except InvalidProjectNameError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except ProjectExistsError as e:
        error_panel = Panel(
            f"Directory '[cyan]{escape(e.path.name)}[/cyan]' already exists\n"
            "Please choose a different project name or remove the existing directory.",
            title="[red]Directory Conflict[/red]",
            border_style="red",
            padding=(1, 2)
        )
        console.print()
        console.print(error_panel)
        raise typer.Exit(1)

    setup_lines = [
        "[cyan]Project Setup[/cyan]",
        "",
        f"{'Project':<15} [green]{project_path.name}[/green]",
        f"{'Working Path':<15} [dim]{escape(str(cwd))}[/dim]",
        f"{'Target Path':<15} [dim]{escape(str(project_path))}[/dim]",
        f"{'Template':<15} [dim]{escape(request.source)}[/dim]",
    ]
    console.print(Panel("\n".join(setup_lines), border_style="cyan", padding=(1, 2)))

    tracker = StepTracker("Create Project")
    for key, label in [
        ("fetch", "Download template"),
        ("copy", "Copy template files"),
        ("cleanup", "Remove scratch directory"),
        ("configure", "Configure package.json"),
        ("env", "Create .env file"),
        ("final", "Finalize"),
    ]:
        tracker.add(key, label)

    # Transient live tree is replaced by the final static render below
    with Live(tracker.render(), console=console, refresh_per_second=8, transient=True) as live:
        tracker.attach_refresh(lambda: live.update(tracker.render()))
        try:
            created = initializer.create(request, tracker=tracker)
        except TemplateFetchError as e:
            failure = (
                "Failed to download template. Please check your internet connection "
                "and that git is installed.\n"
                f"[dim]Repository URL: {escape(e.source)}[/dim]"
            )
            if debug and e.detail:
                failure += f"\n\n[bright_black]{escape(e.detail)}[/bright_black]"
            live.stop()
            console.print(tracker.render())
            console.print(Panel(failure, title="[red]Template Fetch Error[/red]", border_style="red", padding=(1, 2)))
            if debug:
                console.print(_debug_panel(temp_root))
            raise typer.Exit(1)
        except Exception as e:
            live.stop()
            console.print(tracker.render())
            console.print(Panel(f"Initialization failed: {escape(str(e))}", title="Failure", border_style="red"))
            if debug:
                console.print(_debug_panel(temp_root))
            raise typer.Exit(1)

    console.print(tracker.render())
    console.print("\n[bold green]Project ready.[/bold green]")
    _print_next_steps(created)
    return created


@app.command(
    cls=BannerCommand,
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
def create(
    ctx: typer.Context,
    project_name: Optional[str] = typer.Argument(None, help="Name for your new project directory (prompted for when omitted)"),
    repo: str = typer.Option(DEFAULT_REPO, "--repo", "-r", envvar="CREATE_APP_REPO", help="Template git URL, .zip archive URL or local directory"),
    skip_tls: bool = typer.Option(False, "--skip-tls", help="Skip SSL/TLS verification for archive downloads (not recommended)"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output for fetch and copy failures"),
    github_token: Optional[str] = typer.Option(None, "--github-token", help="GitHub token for archive downloads (or set GH_TOKEN or GITHUB_TOKEN environment variable)"),
):
    """
    Create a new project from the template repository.

    This command will:
    1. Ask for a project name if none was given
    2. Shallow-clone the template into a temporary directory
    3. Copy it into ./<project-name>, skipping .git, node_modules, .next and dev.sqlite3
    4. Set the package.json name and reset its version to 0.1.0
    5. Create .env from env.example when the template has one

    Examples:
        create-app my-app
        create-app my-app --repo https://github.com/you/template.git
        create-app my-app -r ../local-template
        create-app
    """
    show_banner()

    name, ignored = split_arguments([project_name, *ctx.args])
    if ignored:
        console.print(f"[yellow]Ignoring unrecognized option(s):[/yellow] {escape(' '.join(ignored))}")

    run(
        InitRequest(project_name=name, source=repo),
        cwd=Path.cwd(),
        temp_root=Path(tempfile.gettempdir()),
        skip_tls=skip_tls,
        github_token=github_token,
        debug=debug,
    )


def main():
    app()


if __name__ == "__main__":
    main()
