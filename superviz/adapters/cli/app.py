"""
Main CLI application
"""
import sys
import typer
from pathlib import Path
from typing import Optional

from rich.markup import escape

from ...core.context import Context
from ...core.exceptions import ConfigError, InstallError, RemoteError
from ...core.logging import setup_logging, get_logger, get_stderr_console
from ...domain.install import InstallService, VersionService
from ..config.loader import ConfigLoader

logger = get_logger(__name__)
stderr_console = get_stderr_console()

# Create main app
app = typer.Typer(
    name="svz",
    add_completion=False,
    help="Configure the superviz.io package repository on remote hosts",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
):
    """
    svz - superviz.io repository installer

    Use subcommands to perform different operations:
    - install: Set up the superviz.io repository on user@host
    - version: Show build information
    """
    setup_logging(level=log_level, log_file=log_file)


@app.command()
def install(
    target: str = typer.Argument(..., help="Target host in user@host form"),
    ssh_key: Optional[str] = typer.Option(None, "--ssh-key", "-i", help="Private key file"),
    ssh_port: Optional[int] = typer.Option(None, "--ssh-port", "-p", help="SSH port (default 22)"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Overall timeout in seconds (default 300)"
    ),
    force: bool = typer.Option(False, "--force", "-f", help="Reconfigure even if already set up"),
    skip_host_key_check: bool = typer.Option(
        False, "--skip-host-key-check", help="Disable host key verification (insecure)"
    ),
    accept_new_host_key: bool = typer.Option(
        False, "--accept-new-host-key", help="Trust and save unknown host keys without asking"
    ),
    known_hosts: Optional[str] = typer.Option(None, "--known-hosts", help="known_hosts file to use"),
    password_fallback: bool = typer.Option(
        False, "--password-fallback", help="Ask for a password if the key cannot be loaded"
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file (TOML)"),
):
    """
    Set up the superviz.io package repository on a remote host

    Examples:
        svz install admin@server.example.com
        svz install -i ~/.ssh/id_ed25519 -p 2222 admin@server.example.com
    """
    # Flags only override lower layers when set
    cli_overrides = {
        "key_path": ssh_key,
        "port": ssh_port,
        "timeout": timeout,
        "known_hosts_path": known_hosts,
        "force": force or None,
        "skip_host_key_check": skip_host_key_check or None,
        "accept_new_host_key": accept_new_host_key or None,
        "password_fallback": password_fallback or None,
    }

    service = InstallService()
    try:
        loader = ConfigLoader()
        config = loader.to_install_config(loader.load(toml_path=config_path, cli_overrides=cli_overrides))
        service.validate_and_prepare_config(config, [target])
    except ConfigError as e:
        stderr_console.print(f"[red]Config Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    ctx = Context.background().with_timeout(config.timeout)
    try:
        service.install(ctx, sys.stdout, config)
    except KeyboardInterrupt:
        ctx.cancel()
        stderr_console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)
    except InstallError as e:
        stderr_console.print(f"[red]Install Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except RemoteError as e:
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Install failed")
        stderr_console.print(f"[red]Error:[/red] Install failed: {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def version(
    output_format: str = typer.Option(
        "default", "--format", help="Output format: default, json or short"
    ),
):
    """Show version information"""
    try:
        text = VersionService().format(output_format)
    except ValueError as e:
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    typer.echo(text)


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
