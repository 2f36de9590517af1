"""
Starkmoat - anonymous group signalling for Starknet accounts.

Members prove they belong to an admin-managed group and derive a
single-use nullifier per action, without revealing which member acted.
"""

import click

__version__ = "0.1.0"

DISCLAIMER = (
    "⚠️  PROTOTYPE - NOT PRODUCTION READY. Nullifier replay protection here is "
    "local and advisory; membership is not proven in zero knowledge."
)


def print_disclaimer() -> None:
    click.echo(click.style(DISCLAIMER, fg="yellow"), err=True)
