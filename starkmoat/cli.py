"""
Command-Line Interface for Starkmoat

Member setup, nullifier derivation, local root registry management and a
dry-run anonymous signal flow.
"""

import click
import json
import sys
from dataclasses import replace
from typing import List, Optional

import trio
from rich.console import Console
from rich.table import Table

from starkmoat import __version__, print_disclaimer
from starkmoat.protocol.exceptions import (
    InvalidRoot,
    NullifierAlreadyUsed,
    StarkmoatError,
    SubmissionError,
)
from starkmoat.protocol.felt import parse_felt, short_hex, to_hex_felt
from starkmoat.protocol.config import HASH_ENCODINGS
from starkmoat.protocol.nullifier import (
    MemberCredential,
    derive_action_hash,
    derive_leaf,
    derive_nullifier,
)
from starkmoat.protocol.registry import FileEventLog, FileRegistryStorage, RootRegistry
from starkmoat.protocol.settings import StarkmoatSettings, load_settings
from starkmoat.submission.signaler import AnonymousSignaler, SignalConfig
from starkmoat.submission.transport import DryRunTransport, parse_calldata_input


def _fail(message: str) -> None:
    click.echo(click.style(f"✗ {message}", fg="red"), err=True)
    sys.exit(1)


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, sort_keys=True))


def _with_state(settings: StarkmoatSettings, state_path: Optional[str]) -> StarkmoatSettings:
    return replace(settings, registry_path=state_path) if state_path else settings


def _open_registry(settings: StarkmoatSettings) -> RootRegistry:
    return RootRegistry(
        storage=FileRegistryStorage(settings.registry_path),
        events=FileEventLog(settings.events_path),
    )


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--config',
    'config_path',
    type=click.Path(dir_okay=False),
    default=None,
    help='YAML settings file (default: ./starkmoat.yaml if present)'
)
@click.pass_context
def main(ctx, config_path):
    """
    Starkmoat - anonymous group signalling for Starknet accounts

    Generate a member secret, share its leaf, and derive a single-use
    nullifier for each action context.

    ⚠️  PROTOTYPE - NOT PRODUCTION READY
    """
    try:
        ctx.obj = load_settings(config_path)
    except StarkmoatError as e:
        _fail(str(e))


# ============================================================================
# MEMBER SETUP
# ============================================================================


@main.command()
@click.option('--json', 'as_json', is_flag=True, help='Emit JSON')
def secret(as_json):
    """
    Generate a member secret and its leaf.

    Keep the secret private. Share only the leaf for enrollment.
    """
    credential = MemberCredential.create()
    if as_json:
        _echo_json({
            "secret": to_hex_felt(credential.secret),
            "leaf": to_hex_felt(credential.leaf),
        })
        return

    click.echo(click.style("Secret (private): ", fg="yellow") + to_hex_felt(credential.secret))
    click.echo(click.style("Leaf (share):     ", fg="green") + to_hex_felt(credential.leaf))


@main.command()
@click.argument('secret_hex')
def leaf(secret_hex):
    """Derive the leaf for an existing secret."""
    try:
        click.echo(to_hex_felt(derive_leaf(parse_felt(secret_hex))))
    except StarkmoatError as e:
        _fail(str(e))


@main.command()
@click.option('--secret', 'secret_hex', required=True, help='Member secret (hex)')
@click.option('--actor', required=True, help='Account address submitting the action')
@click.option('--action', default=None, help='Action label (default: settings.action)')
@click.option('--domain', default=None, help='Domain separator (default: settings.domain)')
@click.option('--root', default=None, help='Membership root (default: settings.root)')
@click.option(
    '--encoding',
    type=click.Choice(list(HASH_ENCODINGS)),
    default=None,
    help='HashToField encoding (default: STARKMOAT_HASH_ENCODING or joined)'
)
@click.option('--json', 'as_json', is_flag=True, help='Emit JSON')
@click.pass_obj
def nullifier(settings: StarkmoatSettings, secret_hex, actor, action, domain, root, encoding, as_json):
    """
    Derive the action hash and nullifier for one action context.

    Examples:

        starkmoat nullifier --secret 0x1234abcd --actor 0xabc --root 0x11
    """
    action = action if action is not None else settings.action
    domain = domain if domain is not None else settings.domain
    root = root if root is not None else settings.root

    try:
        member_secret = parse_felt(secret_hex)
        root_value = parse_felt(root)
        if root_value == 0:
            raise InvalidRoot("Root cannot be zero")
        root = to_hex_felt(root_value)
        actor = to_hex_felt(parse_felt(actor))
        action_hash = derive_action_hash(domain, action, root, actor, encoding)
        value = derive_nullifier(member_secret, action_hash, encoding)
    except StarkmoatError as e:
        _fail(str(e))
        return

    if as_json:
        _echo_json({
            "domain": domain,
            "action": action,
            "root": root,
            "actor": actor,
            "action_hash": to_hex_felt(action_hash),
            "nullifier": to_hex_felt(value),
        })
        return

    click.echo(f"Action hash: {to_hex_felt(action_hash)}")
    click.echo(f"Nullifier:   {to_hex_felt(value)}")


# ============================================================================
# ROOT REGISTRY
# ============================================================================


@main.group()
@click.option(
    '--state',
    'state_path',
    type=click.Path(dir_okay=False),
    default=None,
    help='Registry state file (default: settings.registry_path)'
)
@click.pass_context
def registry(ctx, state_path):
    """Manage a local root registry (CBOR state + event log)."""
    ctx.obj = _with_state(ctx.obj, state_path)


@registry.command('init')
@click.argument('root')
@click.option('--caller', required=True, help='Identity initializing the registry (becomes admin)')
@click.pass_obj
def registry_init(settings: StarkmoatSettings, root, caller):
    """Accept the first root and make CALLER the admin."""
    try:
        admin = _open_registry(settings).initialize(root, caller=caller)
    except StarkmoatError as e:
        _fail(str(e))
        return
    click.echo(click.style(f"✓ Registry initialized by {admin}", fg="green"))


@registry.command('set-root')
@click.argument('root')
@click.option('--caller', required=True, help='Identity rotating the root (must be admin)')
@click.pass_obj
def registry_set_root(settings: StarkmoatSettings, root, caller):
    """Rotate the current root."""
    try:
        reg = _open_registry(settings)
        reg.set_root(caller, root)
    except StarkmoatError as e:
        _fail(str(e))
        return
    click.echo(click.style(
        f"✓ Current root: {to_hex_felt(reg.get_current_root())}", fg="green"
    ))


@registry.command('check')
@click.argument('root')
@click.pass_obj
def registry_check(settings: StarkmoatSettings, root):
    """Exit 0 if ROOT was ever accepted, 1 otherwise."""
    try:
        accepted = _open_registry(settings).is_root_accepted(root)
    except StarkmoatError as e:
        _fail(str(e))
        return
    if accepted:
        click.echo(click.style(f"✓ {root} accepted", fg="green"))
    else:
        click.echo(click.style(f"✗ {root} not accepted", fg="red"))
        sys.exit(1)


@registry.command('show')
@click.option('--json', 'as_json', is_flag=True, help='Emit JSON')
@click.pass_obj
def registry_show(settings: StarkmoatSettings, as_json):
    """Show admin, current root and root transitions."""
    try:
        reg = _open_registry(settings)
        history = reg.history()
    except StarkmoatError as e:
        _fail(str(e))
        return

    if as_json:
        _echo_json({
            "admin": reg.get_admin(),
            "current_root": to_hex_felt(reg.get_current_root()),
            "accepted_roots": [to_hex_felt(r) for r in sorted(reg.accepted_roots())],
            "transitions": [t.to_dict() for t in history],
        })
        return

    if not reg.is_initialized:
        click.echo("Registry not initialized.")
        return

    click.echo(f"Admin:        {reg.get_admin()}")
    click.echo(f"Current root: {to_hex_felt(reg.get_current_root())}")

    table = Table(title="Root transitions")
    table.add_column("#", justify="right")
    table.add_column("Previous")
    table.add_column("New")
    table.add_column("Updated by")
    for index, transition in enumerate(history, start=1):
        table.add_row(
            str(index),
            short_hex(transition.previous_root),
            short_hex(transition.new_root),
            short_hex(transition.updated_by),
        )
    Console().print(table)


# ============================================================================
# ANONYMOUS SIGNAL (dry run)
# ============================================================================


async def _submit_signals(
    signaler: AnonymousSignaler, action: str, calldata: List[str], repeat: int
) -> List[dict]:
    outcomes = []
    for _ in range(repeat):
        try:
            event = await signaler.signal(action, calldata)
        except NullifierAlreadyUsed as e:
            outcomes.append({
                "status": "replay_blocked",
                "nullifier": to_hex_felt(e.nullifier),
            })
        except SubmissionError as e:
            outcomes.append({"status": "failed", "error": str(e)})
        else:
            record = event.to_dict()
            record["status"] = "accepted"
            record["link"] = signaler.tx_link(event)
            outcomes.append(record)
    return outcomes


@main.command()
@click.option('--secret', 'secret_hex', required=True, help='Member secret (hex)')
@click.option('--account', required=True, help='Account address submitting the action (actor)')
@click.option('--action', default=None, help='Action label (default: settings.action)')
@click.option('--domain', default=None, help='Domain separator (default: settings.domain)')
@click.option('--root', default=None, help='Membership root (default: settings.root)')
@click.option(
    '--from-registry',
    is_flag=True,
    help='Use the local registry: current root by default, and reject unaccepted roots'
)
@click.option(
    '--state',
    'state_path',
    type=click.Path(dir_okay=False),
    default=None,
    help='Registry state file for --from-registry (default: settings.registry_path)'
)
@click.option('--target', default=None, help='Target contract (default: settings or account)')
@click.option('--entrypoint', default=None, help='Entry point (default: settings.entrypoint)')
@click.option('--calldata', default='', help='Comma/newline separated felts')
@click.option(
    '--append-nullifier/--no-append-nullifier',
    default=None,
    help='Append nullifier as last calldata item (default: settings)'
)
@click.option('--repeat', type=click.IntRange(min=1), default=1, help='Submit the same action N times')
@click.option('--fail-first', type=click.IntRange(min=0), default=0, help='Dry run: reject the first N submissions')
@click.option('--json', 'as_json', is_flag=True, help='Emit JSON')
@click.pass_obj
def signal(
    settings: StarkmoatSettings,
    secret_hex,
    account,
    action,
    domain,
    root,
    from_registry,
    state_path,
    target,
    entrypoint,
    calldata,
    append_nullifier,
    repeat,
    fail_first,
    as_json,
):
    """
    Submit an anonymous action through the dry-run transport.

    Repeating the same action shows the replay guard blocking the reused
    nullifier; --fail-first shows a failed submission staying retryable.

    Examples:

        starkmoat signal --secret 0x1234abcd --account 0xabc --repeat 2

        starkmoat signal --secret 0x1234abcd --account 0xabc --fail-first 1 --repeat 2
    """
    try:
        credential = MemberCredential.from_secret(parse_felt(secret_hex))
        reg: Optional[RootRegistry] = None
        if from_registry:
            reg = _open_registry(_with_state(settings, state_path))
        elif root is None:
            root = settings.root

        config = SignalConfig(
            target_contract=target or settings.target_contract or account,
            domain=domain if domain is not None else settings.domain,
            root=root,
            entrypoint=entrypoint or settings.entrypoint,
            append_nullifier=(
                settings.append_nullifier if append_nullifier is None else append_nullifier
            ),
            chain_id=settings.chain_id,
        )
        transport = DryRunTransport(account_address=account, fail_next=fail_first)
        signaler = AnonymousSignaler(transport, credential, config, registry=reg)
        outcomes = trio.run(
            _submit_signals,
            signaler,
            action if action is not None else settings.action,
            parse_calldata_input(calldata),
            repeat,
        )
    except StarkmoatError as e:
        _fail(str(e))
        return

    if as_json:
        _echo_json({
            "rpc_url": settings.rpc_url,
            "signal_count": signaler.signal_count,
            "outcomes": outcomes,
        })
        return

    click.echo(f"Dry run (RPC not contacted: {settings.rpc_url})")
    table = Table(title="Signals")
    table.add_column("Status")
    table.add_column("Nullifier")
    table.add_column("Tx")
    for outcome in outcomes:
        status = outcome["status"]
        style = {"accepted": "green", "replay_blocked": "yellow"}.get(status, "red")
        table.add_row(
            f"[{style}]{status}[/{style}]",
            short_hex(outcome.get("nullifier", "-")),
            short_hex(outcome["tx_hash"]) if "tx_hash" in outcome else outcome.get("error", "-"),
        )
    Console().print(table)
    click.echo(f"Signals accepted: {signaler.signal_count}")


# ============================================================================
# MISC
# ============================================================================


@main.command('config')
@click.pass_obj
def show_config(settings: StarkmoatSettings):
    """Print the effective settings as YAML."""
    click.echo(settings.to_yaml(), nl=False)


@main.command()
def version():
    """Show version and disclaimer information."""
    click.echo(f"\nStarkmoat v{__version__}")
    click.echo("Prototype - Not Production Ready\n")
    print_disclaimer()


if __name__ == '__main__':
    main()
