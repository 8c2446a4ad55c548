import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Iterator, Optional, TextIO

from models import (
    AccountSnapshot,
    Chargeback,
    Deposit,
    Dispute,
    Resolve,
    Transaction,
    TransactionType,
    Withdrawal,
)

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
MAX_AMOUNT = Decimal(2**96 - 1)
MAX_AMOUNT_PLACES = 28

OUTPUT_FIELDS = ["client", "available", "held", "total", "locked"]

_REFERENCE_TYPES = {
    TransactionType.DISPUTE: Dispute,
    TransactionType.RESOLVE: Resolve,
    TransactionType.CHARGEBACK: Chargeback,
}


class MalformedRecord(ValueError):
    pass


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """
    Lazily parse a `type,client,tx,amount` CSV stream into transaction records.
    Malformed rows are logged and skipped; they never reach the engine.
    """
    reader = csv.DictReader(stream, skipinitialspace=True)
    if reader.fieldnames is not None:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]

    for row in reader:
        try:
            yield parse_row(row)
        except MalformedRecord as e:
            logger.warning(f"Skipping row {reader.line_num}: {e}")


def read_transactions_from_file(filepath: str) -> Iterator[Transaction]:
    with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
        yield from read_transactions(f)


def parse_row(row: Dict[str, Optional[str]]) -> Transaction:
    """Parse a CSV row into a transaction record, raising MalformedRecord if it isn't one."""
    normalized = {k: (v or "").strip() for k, v in row.items() if k is not None}

    try:
        transaction_type = TransactionType(normalized.get("type", "").lower())
    except ValueError:
        raise MalformedRecord(f"unknown transaction type {normalized.get('type')!r}") from None

    client_id = _parse_id(normalized, "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized, "tx", MAX_TRANSACTION_ID)
    amount_str = normalized.get("amount", "")

    if transaction_type in _REFERENCE_TYPES:
        if amount_str:
            raise MalformedRecord(f"{transaction_type.value} must not carry an amount, got {amount_str!r}")
        return _REFERENCE_TYPES[transaction_type](client_id=client_id, transaction_id=transaction_id)

    amount = _parse_amount(amount_str, transaction_type)
    if transaction_type is TransactionType.DEPOSIT:
        return Deposit(client_id=client_id, transaction_id=transaction_id, amount=amount)
    return Withdrawal(client_id=client_id, transaction_id=transaction_id, amount=amount)


def _parse_id(normalized: Dict[str, str], field: str, maximum: int) -> int:
    value = normalized.get(field, "")
    try:
        parsed = int(value)
    except ValueError:
        raise MalformedRecord(f"invalid {field} {value!r}") from None
    if not 0 <= parsed <= maximum:
        raise MalformedRecord(f"{field} {parsed} out of range 0..{maximum}")
    return parsed


def _parse_amount(value: str, transaction_type: TransactionType) -> Decimal:
    if not value:
        raise MalformedRecord(f"{transaction_type.value} requires an amount")
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise MalformedRecord(f"invalid amount {value!r}") from None
    if not amount.is_finite():
        raise MalformedRecord(f"invalid amount {value!r}")
    if amount.copy_abs() > MAX_AMOUNT or -amount.as_tuple().exponent > MAX_AMOUNT_PLACES:
        raise MalformedRecord(f"amount {value!r} out of range")
    return amount


def format_decimal(value: Decimal) -> str:
    """Format an already rounded decimal with its fixed places, never in exponent form."""
    return f"{value:f}"


def write_accounts(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_FIELDS)
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client_id,
            format_decimal(snapshot.available),
            format_decimal(snapshot.held),
            format_decimal(snapshot.total),
            str(snapshot.locked).lower(),
        ])
