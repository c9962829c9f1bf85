"""
web3-backed ChainClient.

Uses a blocking HTTPProvider and pushes every RPC round trip onto a worker
thread with asyncio.to_thread, so each call is a suspension point for the
event loop.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from eth_account import Account
from hexbytes import HexBytes
from web3 import Web3

from ..exceptions import ConfigurationError
from ..types import SwapRequest
from .abi import ERC20_ABI, SWAP_ROUTER_ABI, SWAP_TOPIC, decode_swap_log

logger = logging.getLogger(__name__)


class Web3ChainClient:
    """Reads ERC20 state and signs/submits router transactions for one wallet."""

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        router_address: str,
        wallet_address: Optional[str] = None,
        w3: Optional[Web3] = None,
    ):
        self.w3 = w3 or Web3(Web3.HTTPProvider(rpc_url))

        try:
            self.account = Account.from_key(private_key)
        except Exception as e:
            raise ConfigurationError(f"Invalid private key: {e}") from e

        self.router = self.w3.eth.contract(
            address=Web3.to_checksum_address(router_address), abi=SWAP_ROUTER_ABI
        )
        self._wallet = Web3.to_checksum_address(wallet_address or self.account.address)
        self._chain_id: Optional[int] = None

        if self._wallet != self.account.address:
            logger.warning(
                f"Swap recipient {self._wallet} differs from signer {self.account.address}"
            )
        logger.info(f"Loaded account: {self.account.address}")

    @property
    def wallet_address(self) -> str:
        return self._wallet

    @property
    def signer_address(self) -> str:
        return self.account.address

    def is_connected(self) -> bool:
        return self.w3.is_connected()

    def _erc20(self, token: str):
        return self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=ERC20_ABI)

    async def get_allowance(self, token: str, owner: str, spender: str) -> int:
        call = self._erc20(token).functions.allowance(
            Web3.to_checksum_address(owner), Web3.to_checksum_address(spender)
        )
        return await asyncio.to_thread(call.call)

    async def get_balance(self, token: str, owner: str) -> int:
        call = self._erc20(token).functions.balanceOf(Web3.to_checksum_address(owner))
        return await asyncio.to_thread(call.call)

    async def send_approve(self, token: str, spender: str, amount: int) -> str:
        fn = self._erc20(token).functions.approve(
            Web3.to_checksum_address(spender), amount
        )
        return await asyncio.to_thread(self._sign_and_send, fn, None)

    async def estimate_swap_gas(self, request: SwapRequest) -> int:
        fn = self.router.functions.exactInputSingle(self._router_params(request))
        return await asyncio.to_thread(fn.estimate_gas, {"from": self.signer_address})

    async def send_swap(self, request: SwapRequest, gas_limit: int) -> str:
        fn = self.router.functions.exactInputSingle(self._router_params(request))
        return await asyncio.to_thread(self._sign_and_send, fn, gas_limit)

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Mapping[str, Any]:
        return await asyncio.to_thread(
            self.w3.eth.wait_for_transaction_receipt, tx_hash, timeout
        )

    def decode_swap_amounts(self, receipt: Mapping[str, Any]) -> List[Tuple[int, int]]:
        amounts = []
        for log in receipt.get("logs", []):
            topics = log.get("topics") or []
            if not topics or Web3.to_hex(HexBytes(topics[0])) != SWAP_TOPIC:
                continue
            try:
                amounts.append(decode_swap_log(log))
            except Exception as e:
                logger.debug(f"Skipping undecodable Swap log: {e}")
        return amounts

    @staticmethod
    def _router_params(request: SwapRequest) -> Tuple:
        params = request.as_router_params()
        return (
            Web3.to_checksum_address(params[0]),
            Web3.to_checksum_address(params[1]),
            params[2],
            Web3.to_checksum_address(params[3]),
            *params[4:],
        )

    def _sign_and_send(self, fn, gas_limit: Optional[int]) -> str:
        """Build, sign and broadcast a contract call from the signer account."""
        if self._chain_id is None:
            self._chain_id = self.w3.eth.chain_id

        tx_fields: Dict[str, Any] = {
            "from": self.signer_address,
            "nonce": self.w3.eth.get_transaction_count(self.signer_address, "pending"),
            "chainId": self._chain_id,
        }
        if gas_limit is not None:
            tx_fields["gas"] = gas_limit

        tx = fn.build_transaction(tx_fields)
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)
