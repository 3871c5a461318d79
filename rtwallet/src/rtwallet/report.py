"""
Plain-text payment summary.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from loguru import logger

from rtwallet.wallet.amount import format_btc
from rtwallet.wallet.models import TransactionRecord

PLACEHOLDER = "N/A"


def summary_lines(record: TransactionRecord) -> list[str]:
    """
    Summary fields in fixed order:

    txid, input address, input amount, recipient address, recipient amount,
    change address, change amount, fee, block height, block hash.
    Amounts are in BTC. Missing outputs render as "N/A" with amount 0.
    """
    recipient, change = record.recipient_output, record.change_output
    return [
        record.txid,
        record.input_address,
        format_btc(record.input_amount),
        recipient.address if recipient else PLACEHOLDER,
        format_btc(recipient.value if recipient else 0),
        change.address if change else PLACEHOLDER,
        format_btc(change.value if change else 0),
        format_btc(record.fee),
        str(record.block_height),
        record.block_hash,
    ]


def format_summary(record: TransactionRecord) -> str:
    return "".join(f"{line}\n" for line in summary_lines(record))


def write_summary(record: TransactionRecord, path: Path) -> Path:
    """
    Write the summary to `path` atomically.

    The content goes to a temporary file in the target directory which then
    replaces `path`, so readers never see a partial summary.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(format_summary(record))
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Summary for {record.txid} written to {path}")
    return path
