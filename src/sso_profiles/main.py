"""sso-profiles — entry point.

Discovers the accounts and roles available through AWS IAM Identity Center
and turns them into AWS CLI profiles.
"""

from __future__ import annotations

import logging

import typer

from sso_profiles.commands.profiles_cmd import app as profiles_app

app = typer.Typer(
    name="sso-profiles",
    help="Generate AWS CLI profiles for every account and role reachable through AWS SSO.",
    no_args_is_help=True,
)

app.add_typer(profiles_app, name="profiles")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """sso-profiles — discover SSO accounts and roles, sync them into ~/.aws/config."""
    if verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


if __name__ == "__main__":
    app()
