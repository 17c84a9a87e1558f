"""CLI commands for discovering and syncing SSO profiles."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from sso_profiles.auth import DeviceAuthClient
from sso_profiles.client import SSOClient
from sso_profiles.config import Config, Portal, get_config
from sso_profiles.models.profiles import DiscoveredProfile
from sso_profiles.services.discovery import ProfileDiscoveryService
from sso_profiles.services.merger import ConfigMerger
from sso_profiles.utils.backup import backup_config_file
from sso_profiles.utils.config_file import (
    load_config_document,
    new_config_document,
    render_config_document,
    resolve_config_path,
    write_config_document,
)
from sso_profiles.utils.errors import SSOProfilesError, handle_error
from sso_profiles.utils.output import PROFILE_COLUMNS, OutputFormat, print_output

console = Console(stderr=True)
app = typer.Typer(name="profiles", help="Discover IAM Identity Center profiles.")

StartUrlArg = Annotated[
    str | None,
    typer.Argument(help="Your SSO start URL, e.g. https://my-org.awsapps.com/start"),
]
PortalOpt = Annotated[str | None, typer.Option("--portal", "-p", help="Named portal from portals.yaml")]
RegionOpt = Annotated[
    str | None,
    typer.Option("--sso-region", "-r", help="The region in which you've deployed AWS SSO"),
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Show request details")]


def _discover(config: Config, portal: Portal, verbose: bool = False) -> list[DiscoveredProfile]:
    """Authenticate through the device flow and list every account/role pair."""
    client = SSOClient(timeout=config.settings.timeout, verbose=verbose)
    try:
        token = DeviceAuthClient(client).authenticate(portal.start_url, portal.sso_region)
        service = ProfileDiscoveryService(client, portal.start_url, portal.sso_region)
        return service.discover(token)
    finally:
        client.close()


@app.command("list")
def list_profiles(
    start_url: StartUrlArg = None,
    portal: PortalOpt = None,
    sso_region: RegionOpt = None,
    output: Annotated[OutputFormat, typer.Option("--output", "-o", help="Output format")] = OutputFormat.TABLE,
    verbose: VerboseOpt = False,
) -> None:
    """List every account and role the signed-in user can assume."""
    try:
        config = get_config()
        target = config.resolve_portal(portal, start_url, sso_region)
        profiles = _discover(config, target, verbose)
    except SSOProfilesError as e:
        handle_error(e)
        raise typer.Exit(1)

    rows = [{"profile": p.bare_name, **p.model_dump()} for p in profiles]
    print_output(rows, output, columns=["profile", *PROFILE_COLUMNS], title="SSO Profiles")


@app.command("sync")
def sync_profiles(
    start_url: StartUrlArg = None,
    portal: PortalOpt = None,
    sso_region: RegionOpt = None,
    prefix: Annotated[
        str | None, typer.Option("--prefix", help="An optional prefix for generated SSO profile names"),
    ] = None,
    clean: Annotated[bool, typer.Option("--clean", help="Remove old profiles matching the prefix")] = False,
    populate: Annotated[
        bool, typer.Option("--populate", help="Write the profiles into your AWS config file"),
    ] = False,
    config_file: Annotated[
        str | None, typer.Option("--config-file", help="AWS config file (default: $AWS_CONFIG_FILE or ~/.aws/config)"),
    ] = None,
    backup: Annotated[
        bool, typer.Option("--backup/--no-backup", help="Back up the AWS config file before writing it"),
    ] = True,
    verbose: VerboseOpt = False,
) -> None:
    """Generate `[profile ...]` sections for every account and role.

    Without --populate the sections are printed to stdout. With --populate
    they are merged into the AWS config file, which is only written once the
    whole merge succeeded.
    """
    try:
        config = get_config()
        target = config.resolve_portal(portal, start_url, sso_region, prefix)
        merger = ConfigMerger(prefix=target.prefix, clean=clean)

        if not populate:
            document = new_config_document()
            merger.merge(_discover(config, target, verbose), document)
            typer.echo(render_config_document(document), nl=False)
            return

        path = Path(config_file).expanduser() if config_file else resolve_config_path()
        document = load_config_document(path)
        merged = merger.merge(_discover(config, target, verbose), document)

        if backup:
            saved = backup_config_file(path, config.settings.backup_dir)
            if saved:
                console.print(f"[dim]Backed up {path} to {saved}[/dim]")
        write_config_document(document, path)
        console.print(f"Wrote [bold]{len(merged)}[/bold] profile(s) to {path}", style="green")
    except SSOProfilesError as e:
        handle_error(e)
        raise typer.Exit(1)
