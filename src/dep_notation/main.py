import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    ComprehensiveConfig,
    apply_config_data,
    create_sample_config,
    get_config,
    load_config,
    load_config_file,
    validate_config_values,
)
from .declarations import load_declarations
from .error_handling import DependencyNotationError, get_error_handler
from .reporting import DeclarationReporter, build_to_dict
from .structured_logging import configure_logging

__version__ = "1.0.0"

console = Console()


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 Dep-Notation: component dependency declarations

    Classifies dependency notations and routes them into the implementation,
    compileOnly, runtimeOnly and annotationProcessor buckets of a project.
    """
    if version:
        console.print(f"Dep-Notation version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
    else:
        configure_logging(get_config().logging.log_level)


@cli.command()
@click.argument(
    "file_path", type=click.Path(exists=True, readable=True, dir_okay=False)
)
@click.option(
    "--no-realize",
    is_flag=True,
    help="Leave deferred entries pending instead of realizing them",
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    help="Output format for results",
    show_default=True,
)
@click.option(
    "--output-file",
    "-o",
    type=click.Path(),
    help="Save results to file (JSON format only)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
def declare(
    file_path: str,
    no_realize: bool,
    output_format: str,
    output_file: Optional[str],
    quiet: bool,
) -> None:
    """
    Declare every entry of a declarations file and show the resulting buckets.

    Examples:

      dep-notation declare dependencies.toml

      dep-notation declare dependencies.toml --no-realize

      dep-notation declare dependencies.toml --output-format json -o buckets.json
    """
    if output_file and output_format != "json":
        raise click.ClickException("Output file can only be used with JSON format")

    try:
        build = load_declarations(file_path)
        if not no_realize:
            build.realize()
    except (DependencyNotationError, ValueError) as e:
        if not quiet:
            Console(stderr=True).print(f"❌ Error: {e}", style="red", markup=False)
        sys.exit(1)

    if output_format == "json":
        json_output = json.dumps(build_to_dict(build), indent=2, ensure_ascii=False)
        if output_file:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(json_output)
            if not quiet:
                console.print(f"✅ Results saved to {output_file}", style="green")
        else:
            print(json_output)
    elif not quiet:
        DeclarationReporter(console).print_build(build)


@cli.command()
def info():
    """Show the supported notations and declarations file format."""
    info_text = """
[bold blue]🧭 Notation Strategies:[/bold blue]

• [green]Eager[/green] - plain notations, created and added immediately
• [green]Bundle[/green] - catalog bundles, expanded immediately in declared order
• [green]Deferred[/green] - providers, added when the bucket realizes pending entries

[bold blue]📄 Declarations File Entries:[/bold blue]

Sections: project (name, catalog), projects (sibling names), libraries, bundles, dependencies

• [yellow]"group:name:version"[/yellow] - module notation
• [yellow]{module = "...", lazy = true}[/yellow] - deferred module notation
• [yellow]{library = "alias"}[/yellow] - catalog library
• [yellow]{bundle = "alias"}[/yellow] - catalog bundle
• [yellow]{project = "core", test_fixtures = true}[/yellow] - sibling project fixtures
• [yellow]{classpath = "gradleApi"}[/yellow] - gradleApi, gradleTestKit, localGroovy

Customizer keys: because, exclude, transitive, capabilities, test_fixtures

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]DEP_NOTATION_TEST_FIXTURES_SUFFIX[/cyan] - Capability suffix for module test fixtures
• [cyan]DEP_NOTATION_ALLOW_STRING_NOTATION[/cyan] - Accept "group:name:version" strings
• [cyan]DEP_NOTATION_ALLOW_MAP_NOTATION[/cyan] - Accept group/name/version maps
• [cyan]DEP_NOTATION_LOG_LEVEL[/cyan] - Log level for declaration events

[bold blue]💡 Usage Examples:[/bold blue]

  dep-notation declare dependencies.toml
  dep-notation declare dependencies.toml --output-format json
  dep-notation config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]Dep-Notation Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".dep-notation.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = load_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]🧭 Notation Settings:[/bold cyan]")
    console.print(f"  Test Fixtures Suffix: {current_config.notation.test_fixtures_suffix}")
    console.print(f"  String Notation: {current_config.notation.allow_string_notation}")
    console.print(f"  Map Notation: {current_config.notation.allow_map_notation}")

    console.print("\n[bold cyan]🪣 Buckets:[/bold cyan]")
    for bucket_name in current_config.buckets.names():
        console.print(f"  {bucket_name}")

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")

    stats = get_error_handler().get_error_stats()
    if stats:
        console.print("\n[bold cyan]⚠️  Errors This Session:[/bold cyan]")
        for key, count in sorted(stats.items()):
            console.print(f"  {key}: {count}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))

    if config_data is None:
        console.print(f"❌ Could not load config from {config_file}", style="red")
        sys.exit(1)

    candidate = ComprehensiveConfig()
    apply_config_data(candidate, config_data)
    errors = validate_config_values(candidate)
    if errors:
        console.print("❌ Configuration validation failed:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
