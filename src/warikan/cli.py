"""Click CLI entrypoint for Warikan."""

import logging
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__, templates
from .config import get_settings
from .models import Member, Payment, ValidationResult
from .state import WarikanStore
from .storage import StateStorage, StorageError


def _store(ctx: click.Context) -> WarikanStore:
    store: WarikanStore = ctx.obj
    return store


def _fail(result: ValidationResult[Any]) -> None:
    """Print validation errors and exit with status 1."""
    for message in result.messages:
        click.echo(templates.ERROR_VALIDATION.format(message=message))
    sys.exit(1)


def _resolve_member(store: WarikanStore, ref: str) -> str:
    """
    Resolve a member reference (name, id or unique id prefix) to an id.

    Unresolved references are returned unchanged so the store reports them.
    """
    member = store.find_member_by_name(ref) or store.find_member(ref)
    if member:
        return member.id
    matches = [m for m in store.state.members if m.id.startswith(ref)]
    return matches[0].id if len(matches) == 1 else ref


def _resolve_payment(store: WarikanStore, ref: str) -> str:
    matches = [p for p in store.state.payments if p.id.startswith(ref)]
    return matches[0].id if len(matches) == 1 else ref


def _payer_name(store: WarikanStore, payment: Payment) -> str:
    member = store.find_member(payment.payer_id)
    return member.name if member else templates.UNKNOWN_MEMBER


def _memo_suffix(memo: str | None) -> str:
    return f" - {memo}" if memo else ""


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="State file (default: ~/.warikan/state.json)",
)
@click.pass_context
def cli(ctx: click.Context, state_file: Path | None) -> None:
    """Warikan - split event costs and settle up in as few transfers as possible."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = WarikanStore(StateStorage(state_file), autosave_delay=0)


@cli.command()
@click.argument("name", nargs=-1, required=True)
@click.pass_context
def event(ctx: click.Context, name: tuple[str, ...]) -> None:
    """Set the event name."""
    result = _store(ctx).set_event_name(" ".join(name))
    if not result.is_valid:
        _fail(result)
    click.echo(templates.EVENT_SET.format(event_name=result.data))


@cli.command("add-member")
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def add_member(ctx: click.Context, names: tuple[str, ...]) -> None:
    """Add one or more members."""
    store = _store(ctx)
    for name in names:
        result = store.add_member(name)
        if not result.is_valid:
            _fail(result)
        member: Member = result.data
        click.echo(templates.MEMBER_ADDED.format(name=member.name))


@cli.command("rename-member")
@click.argument("member")
@click.argument("name")
@click.pass_context
def rename_member(ctx: click.Context, member: str, name: str) -> None:
    """Rename MEMBER (name or id) to NAME."""
    store = _store(ctx)
    member_id = _resolve_member(store, member)
    existing = store.find_member(member_id)
    result = store.edit_member(member_id, name)
    if not result.is_valid:
        _fail(result)
    assert existing is not None
    click.echo(templates.MEMBER_RENAMED.format(old_name=existing.name, new_name=result.data.name))


@cli.command("remove-member")
@click.argument("member")
@click.pass_context
def remove_member(ctx: click.Context, member: str) -> None:
    """Remove MEMBER and every payment they made."""
    store = _store(ctx)
    member_id = _resolve_member(store, member)
    before = len(store.state.payments)
    result = store.remove_member(member_id)
    if not result.is_valid:
        _fail(result)
    click.echo(
        templates.MEMBER_REMOVED.format(
            name=result.data.name,
            payment_count=before - len(store.state.payments),
        )
    )


@cli.command()
@click.argument("payer")
@click.argument("amount")
@click.option("--memo", "-m", default=None, help="What the payment was for")
@click.option(
    "--split-among",
    "-s",
    multiple=True,
    help="Record one payment per payee (repeatable)",
)
@click.pass_context
def pay(
    ctx: click.Context,
    payer: str,
    amount: str,
    memo: str | None,
    split_among: tuple[str, ...],
) -> None:
    """Record that PAYER paid AMOUNT."""
    store = _store(ctx)
    payer_id = _resolve_member(store, payer)

    if split_among:
        payee_ids = [_resolve_member(store, ref) for ref in split_among]
        split_result = store.add_split_payment(payer_id, amount, payee_ids, memo)
        if not split_result.is_valid:
            _fail(split_result)
        payments: list[Payment] = split_result.data
        shares = ", ".join(
            f"{p.memo} {templates.format_currency(p.amount)}" for p in payments
        )
        click.echo(
            templates.SPLIT_PAYMENT_ADDED.format(
                payer=_payer_name(store, payments[0]),
                amount_display=templates.format_currency(sum(p.amount for p in payments)),
                shares=shares,
            )
        )
        return

    result = store.add_payment(payer_id, amount, memo)
    if not result.is_valid:
        _fail(result)
    payment: Payment = result.data
    click.echo(
        templates.PAYMENT_ADDED.format(
            payer=_payer_name(store, payment),
            amount_display=templates.format_currency(payment.amount),
            memo=_memo_suffix(payment.memo),
        )
    )


@cli.command("edit-payment")
@click.argument("payment")
@click.option("--payer", default=None, help="New payer (name or id)")
@click.option("--amount", default=None, help="New amount")
@click.option("--memo", default=None, help="New memo (empty string clears it)")
@click.pass_context
def edit_payment(
    ctx: click.Context,
    payment: str,
    payer: str | None,
    amount: str | None,
    memo: str | None,
) -> None:
    """Change the payer, amount or memo of PAYMENT (id or id prefix)."""
    store = _store(ctx)
    payer_id = _resolve_member(store, payer) if payer is not None else None
    result = store.edit_payment(_resolve_payment(store, payment), payer_id, amount, memo)
    if not result.is_valid:
        _fail(result)
    edited: Payment = result.data
    click.echo(
        templates.PAYMENT_UPDATED.format(
            payer=_payer_name(store, edited),
            amount_display=templates.format_currency(edited.amount),
            memo=_memo_suffix(edited.memo),
        )
    )


@cli.command("remove-payment")
@click.argument("payment")
@click.pass_context
def remove_payment(ctx: click.Context, payment: str) -> None:
    """Remove PAYMENT (id or id prefix)."""
    store = _store(ctx)
    payment_id = _resolve_payment(store, payment)
    existing = store.find_payment(payment_id)
    payer = _payer_name(store, existing) if existing else templates.UNKNOWN_MEMBER
    result = store.remove_payment(payment_id)
    if not result.is_valid:
        _fail(result)
    click.echo(
        templates.PAYMENT_REMOVED.format(
            payer=payer,
            amount_display=templates.format_currency(result.data.amount),
        )
    )


@cli.command()
@click.pass_context
def members(ctx: click.Context) -> None:
    """List members."""
    click.echo(templates.format_members_list(_store(ctx).state.members))


@cli.command()
@click.pass_context
def payments(ctx: click.Context) -> None:
    """List payments."""
    state = _store(ctx).state
    click.echo(templates.format_payments_list(state.payments, state.members))


@cli.command()
@click.pass_context
def balances(ctx: click.Context) -> None:
    """Show what each member paid versus their fair share."""
    store = _store(ctx)
    click.echo(
        templates.BALANCES.format(
            event_name=store.state.event_name or templates.UNTITLED_EVENT,
            balances=templates.format_balances_list(store.member_balances()),
        )
    )


@cli.command()
@click.pass_context
def settle(ctx: click.Context) -> None:
    """Show the transfers that settle everyone up."""
    store = _store(ctx)
    setup = store.setup_validation()
    if not setup.is_valid:
        click.echo(
            templates.SETUP_INCOMPLETE.format(
                errors="\n".join(f"• {m}" for m in setup.messages)
            )
        )
        sys.exit(1)

    click.echo(
        templates.SETTLEMENTS.format(
            event_name=store.state.event_name,
            settlements=templates.format_settlements_list(store.settlements()),
        )
    )


@cli.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show totals and the settlement plan."""
    store = _store(ctx)
    info = store.summary()
    click.echo(
        templates.SUMMARY.format(
            event_name=store.state.event_name or templates.UNTITLED_EVENT,
            member_count=info.member_count,
            total_display=templates.format_currency(info.total_amount),
            payment_count=info.payment_count,
            average_display=templates.format_currency(round(info.average_per_person)),
            settlements_count=info.settlements_count,
            settlements=templates.format_settlements_list(store.settlements()),
        )
    )


@cli.command()
@click.confirmation_option(prompt="Erase the event, members and payments?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Erase all data."""
    _store(ctx).reset()
    click.echo(templates.RESET_DONE)


def main() -> None:
    """Main entry point."""
    try:
        cli()
    except StorageError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
