"""
Reconstruction of a confirmed payment from node data.

Given a txid, recovers the funding input's source address and amount,
classifies outputs into recipient and change, and reports fee and
confirming block. Nothing is taken from local state: every value comes from
the node's query interface and every address is rebuilt from its
scriptPubKey under the configured network.

Assumptions (single-payment transactions):
- Only the first input is resolved. Multi-input provenance is not tracked.
- Any output not paying the recipient address is change. With several such
  outputs the last one wins.
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from rtwallet.constants import RPC_INVALID_ADDRESS_OR_KEY
from rtwallet.errors import NodeRPCError, PreconditionError, ReconstructionError
from rtwallet.models import NetworkType
from rtwallet.wallet.address import script_to_address
from rtwallet.wallet.amount import btc_to_sats
from rtwallet.wallet.models import TransactionRecord, TxOutputInfo, WalletHandle


class TransactionInspector:
    def __init__(self, network: NetworkType = NetworkType.REGTEST):
        self.network = network

    def inspect(
        self, txid: str, funder: WalletHandle, recipient_address: str
    ) -> TransactionRecord:
        """
        Build the TransactionRecord for a confirmed transaction.

        Args:
            txid: Transaction to inspect
            funder: Wallet that sent the transaction (its view carries the fee)
            recipient_address: Address the payment was made to

        Raises:
            PreconditionError: Transaction has no confirming block
            ReconstructionError: Input cannot be resolved or a script has no address
        """
        gateway = funder.gateway
        details = gateway.get_transaction(txid, include_watchonly=True, verbose=True)

        block_hash = details.get("blockhash")
        if not block_hash:
            raise PreconditionError(f"Transaction {txid} is not confirmed")

        block_height = gateway.get_block_info(block_hash)["height"]

        # "decoded" is only returned by nodes supporting gettransaction verbose
        tx = details.get("decoded") or gateway.get_raw_transaction(txid, block_hash)

        funding = self._resolve_funding_input(funder, tx)
        recipient_output, change_output = self._classify_outputs(tx, recipient_address)

        fee_btc = details.get("fee")
        if fee_btc is None:
            logger.warning(f"Wallet '{funder.name}' does not know the fee of {txid}, using 0")
            fee = 0
        else:
            fee = abs(btc_to_sats(fee_btc))

        record = TransactionRecord(
            txid=txid,
            input_address=funding.address,
            input_amount=funding.value,
            recipient_output=recipient_output,
            change_output=change_output,
            fee=fee,
            block_height=block_height,
            block_hash=block_hash,
        )
        logger.info(f"Inspected {txid}: confirmed at height {block_height}, fee {fee} sats")
        return record

    def _resolve_funding_input(self, funder: WalletHandle, tx: dict[str, Any]) -> TxOutputInfo:
        """Resolve the previous output spent by the first input."""
        inputs = tx.get("vin") or []
        if not inputs:
            raise ReconstructionError(f"Transaction {tx.get('txid')} has no inputs")

        first = inputs[0]
        if "coinbase" in first or "txid" not in first:
            raise ReconstructionError(
                f"Input 0 of {tx.get('txid')} is a coinbase input without a previous output"
            )

        prev_txid, prev_index = first["txid"], first["vout"]
        prev_tx = funder.gateway.get_raw_transaction(
            prev_txid, self._wallet_block_hash(funder, prev_txid)
        )
        prev_outputs = prev_tx.get("vout") or []
        if not 0 <= prev_index < len(prev_outputs):
            raise ReconstructionError(
                f"Output {prev_index} does not exist in {prev_txid} "
                f"({len(prev_outputs)} outputs)"
            )

        return self._output_info(prev_outputs[prev_index])

    def _wallet_block_hash(self, funder: WalletHandle, txid: str) -> str | None:
        """
        Block containing `txid` as known to the funder wallet.

        The funding input normally spends one of the funder's own outputs, so
        its wallet knows where it was mined and getrawtransaction can find it
        without -txindex. None when the wallet does not know the transaction,
        leaving the lookup to the mempool or the node's txindex.
        """
        try:
            details = funder.gateway.get_transaction(txid, include_watchonly=True, verbose=False)
        except NodeRPCError as e:
            if e.code != RPC_INVALID_ADDRESS_OR_KEY:
                raise
            logger.debug(f"Wallet '{funder.name}' does not know {txid}, needs -txindex")
            return None
        return details.get("blockhash")

    def _classify_outputs(
        self, tx: dict[str, Any], recipient_address: str
    ) -> tuple[TxOutputInfo | None, TxOutputInfo | None]:
        recipient_output: TxOutputInfo | None = None
        change_output: TxOutputInfo | None = None

        for vout in tx.get("vout") or []:
            output = self._output_info(vout)
            if output.address == recipient_address:
                recipient_output = output
                continue
            if change_output is not None:
                # TODO: ask the funder wallet (getaddressinfo ismine) instead of
                # classifying by exclusion once multi-change transactions matter
                logger.warning(
                    f"Several non-recipient outputs in {tx.get('txid')}, "
                    f"{output.address} replaces {change_output.address} as change"
                )
            change_output = output

        return recipient_output, change_output

    def _output_info(self, vout: dict[str, Any]) -> TxOutputInfo:
        script_hex = (vout.get("scriptPubKey") or {}).get("hex")
        if script_hex is None:
            raise ReconstructionError(f"Output {vout.get('n')} has no scriptPubKey")
        return TxOutputInfo(
            address=script_to_address(script_hex, self.network),
            value=btc_to_sats(vout["value"]),
        )
