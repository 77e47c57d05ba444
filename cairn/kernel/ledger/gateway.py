"""
Ledger gateway - typed access to the registry and certificate contracts.

Reads are plain contract calls against the latest state. Writes are signed
locally, submitted, and awaited until mined; anything short of a successful
receipt raises WriteRejected. A write never updates any in-memory view: the
caller re-runs reconciliation afterwards.
"""

import asyncio
from typing import Any, List, Optional

from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractLogicError
from web3.logs import DISCARD

from cairn.config import Settings
from cairn.errors import LedgerNotFound, LedgerUnreachable, WriteRejected
from cairn.kernel.ledger.abi import ERC20_ABI, HYPERCERT_ABI, REGISTRY_ABI
from cairn.kernel.ledger.records import (
    ZERO_ADDRESS,
    ProjectSummary,
    ProofRecord,
    TransactionReceipt,
    parse_project_summary,
    parse_proof_record,
)
from cairn.logging_config import get_logger

logger = get_logger(__name__)


class LedgerGateway:
    """
    Read/write accessor for the on-chain registry.

    Usage:
        gateway = LedgerGateway.from_settings(get_settings())
        summaries = await gateway.list_projects(0, 100)
        record = await gateway.get_proof(summaries[0].proof_addresses[0])
    """

    def __init__(
        self,
        w3: Any,
        registry: Any,
        hypercert: Any,
        funding_token: Any = None,
        *,
        account: Any = None,
        transaction_timeout: float = 120.0,
    ):
        self.w3 = w3
        self.registry = registry
        self.hypercert = hypercert
        self.funding_token = funding_token
        self.account = account
        self.transaction_timeout = transaction_timeout
        # One pending transaction at a time keeps nonces in order
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerGateway":
        w3 = AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))
        registry = w3.eth.contract(
            address=Web3.to_checksum_address(settings.registry_address),
            abi=REGISTRY_ABI,
        )
        hypercert = w3.eth.contract(
            address=Web3.to_checksum_address(settings.hypercert_address),
            abi=HYPERCERT_ABI,
        )
        funding_token = w3.eth.contract(
            address=Web3.to_checksum_address(settings.funding_token_address),
            abi=ERC20_ABI,
        )
        account = Account.from_key(settings.private_key) if settings.private_key else None
        return cls(
            w3,
            registry,
            hypercert,
            funding_token,
            account=account,
            transaction_timeout=settings.transaction_timeout_seconds,
        )

    @property
    def signer_address(self) -> Optional[str]:
        return self.account.address if self.account is not None else None

    async def close(self) -> None:
        disconnect = getattr(self.w3.provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _call(self, fn: Any, *, what: str, address: Optional[str] = None) -> Any:
        try:
            return await fn.call()
        except ContractLogicError as exc:
            raise LedgerNotFound(f"{what} reverted: {exc}", address=address) from exc
        except Exception as exc:
            raise LedgerUnreachable(f"{what} failed: {exc}", address=address) from exc

    async def list_projects(self, offset: int, limit: int) -> List[ProjectSummary]:
        """
        Return at most `limit` project summaries starting at `offset`.

        Ordering follows registration sequence. An offset past the end yields
        an empty list.
        """
        if offset < 0 or limit < 0:
            raise ValueError("offset and limit must be non-negative")
        if limit == 0:
            return []
        try:
            raw = await self._call(
                self.registry.functions.getAllProjects(offset, limit),
                what="getAllProjects",
            )
        except LedgerNotFound:
            logger.debug("Project page out of range", extra={"offset": offset, "limit": limit})
            return []
        return [parse_project_summary(item) for item in list(raw)[:limit]]

    async def get_proof(self, proof_address: str) -> ProofRecord:
        raw = await self._call(
            self.registry.functions.getProof(proof_address),
            what="getProof",
            address=proof_address,
        )
        record = parse_proof_record(proof_address, raw)
        if record.recorder == ZERO_ADDRESS:
            raise LedgerNotFound("Proof was never recorded", address=proof_address)
        return record

    async def is_proof_valid(self, proof_address: str) -> bool:
        """Point-in-time validity; False also while the dispute window is open."""
        result = await self._call(
            self.registry.functions.isProofValid(proof_address),
            what="isProofValid",
            address=proof_address,
        )
        return bool(result)

    async def get_token_owner(self, token_id: int) -> str:
        owner = await self._call(
            self.hypercert.functions.ownerOf(token_id),
            what="ownerOf",
            address=str(token_id),
        )
        if not owner or owner == ZERO_ADDRESS:
            raise LedgerNotFound("Token has no owner", address=str(token_id))
        return str(owner)

    async def get_token_units(self, token_id: int) -> int:
        units = await self._call(
            self.hypercert.functions.unitsOf(token_id),
            what="unitsOf",
            address=str(token_id),
        )
        return int(units)

    async def get_total_units(self, type_id: int) -> int:
        """Units issued for a whole certificate; the claim type id holds the total."""
        units = await self._call(
            self.hypercert.functions.unitsOf(type_id),
            what="unitsOf(type)",
            address=str(type_id),
        )
        return int(units)

    async def get_user_por_count(self, wallet_address: str) -> int:
        count = await self._call(
            self.registry.functions.getUserAvailablePoRCount(
                Web3.to_checksum_address(wallet_address)
            ),
            what="getUserAvailablePoRCount",
            address=wallet_address,
        )
        return int(count)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _send(self, fn: Any, *, what: str, address: Optional[str] = None) -> Any:
        """Sign, submit and wait for one transaction. Returns the raw receipt."""
        if self.account is None:
            raise WriteRejected(f"{what}: no signing key configured", address=address)

        async with self._write_lock:
            try:
                nonce = await self.w3.eth.get_transaction_count(self.account.address, "pending")
                tx = await fn.build_transaction({"from": self.account.address, "nonce": nonce})
                signed = self.account.sign_transaction(tx)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
                logger.info("Transaction sent", extra={"call": what, "tx_hash": Web3.to_hex(tx_hash)})
                receipt = await self.w3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self.transaction_timeout
                )
            except ContractLogicError as exc:
                raise WriteRejected(f"{what} reverted: {exc}", address=address) from exc
            except Exception as exc:
                raise WriteRejected(f"{what} failed: {exc}", address=address) from exc

        tx_hex = Web3.to_hex(receipt["transactionHash"])
        if receipt["status"] != 1:
            raise WriteRejected(f"{what} reverted in block", address=address, tx_hash=tx_hex)
        logger.info(
            "Transaction mined",
            extra={"call": what, "tx_hash": tx_hex, "block": receipt["blockNumber"]},
        )
        return receipt

    @staticmethod
    def _to_receipt(raw: Any, claim_id: Optional[int] = None) -> TransactionReceipt:
        return TransactionReceipt(
            tx_hash=Web3.to_hex(raw["transactionHash"]),
            block_number=int(raw["blockNumber"]),
            status=int(raw["status"]),
            claim_id=claim_id,
        )

    async def register_project(
        self, project_address: str, token_id: int, unit_price: int
    ) -> TransactionReceipt:
        raw = await self._send(
            self.registry.functions.registerProject(project_address, token_id, unit_price),
            what="registerProject",
            address=project_address,
        )
        return self._to_receipt(raw)

    async def record_outputs(self, project_address: str, outputs_address: str) -> TransactionReceipt:
        raw = await self._send(
            self.registry.functions.recordOutputs(project_address, outputs_address),
            what="recordOutputs",
            address=project_address,
        )
        return self._to_receipt(raw)

    async def record_proof(self, project_address: str, proof_address: str) -> TransactionReceipt:
        raw = await self._send(
            self.registry.functions.recordProof(project_address, proof_address),
            what="recordProof",
            address=proof_address,
        )
        return self._to_receipt(raw)

    async def dispute_proof(self, proof_address: str, dispute_address: str) -> TransactionReceipt:
        raw = await self._send(
            self.registry.functions.disputeProof(proof_address, dispute_address),
            what="disputeProof",
            address=proof_address,
        )
        return self._to_receipt(raw)

    async def fund_project(self, amount: int, project_address: str) -> TransactionReceipt:
        raw = await self._send(
            self.registry.functions.fundProject(amount, project_address),
            what="fundProject",
            address=project_address,
        )
        return self._to_receipt(raw)

    async def set_project_impact(self, project_address: str, impact: int) -> TransactionReceipt:
        if not 0 <= impact <= 3:
            raise ValueError(f"Impact must be between 0 and 3, got {impact}")
        raw = await self._send(
            self.registry.functions.setProjectImpact(project_address, impact),
            what="setProjectImpact",
            address=project_address,
        )
        return self._to_receipt(raw)

    async def approve_funding_token(self, amount: int) -> TransactionReceipt:
        """Allow the registry to pull `amount` of the funding token from the signer."""
        raw = await self._send(
            self.funding_token.functions.approve(self.registry.address, amount),
            what="approve",
        )
        return self._to_receipt(raw)

    async def set_approval_for_all(
        self, operator: Optional[str] = None, approved: bool = True
    ) -> TransactionReceipt:
        """Let `operator` (the registry by default) move the signer's certificate fractions."""
        raw = await self._send(
            self.hypercert.functions.setApprovalForAll(
                operator or self.registry.address, approved
            ),
            what="setApprovalForAll",
        )
        return self._to_receipt(raw)

    async def mint_certificate(
        self, units: int, uri: str, restrictions: int = 0
    ) -> TransactionReceipt:
        """Mint a new impact certificate to the signer; the receipt carries the claim id."""
        if self.account is None:
            raise WriteRejected("mintClaim: no signing key configured", address=uri)
        raw = await self._send(
            self.hypercert.functions.mintClaim(self.account.address, units, uri, restrictions),
            what="mintClaim",
            address=uri,
        )
        events = self.hypercert.events.ClaimStored().process_receipt(raw, errors=DISCARD)
        if not events:
            raise WriteRejected(
                "mintClaim mined without a ClaimStored event",
                address=uri,
                tx_hash=Web3.to_hex(raw["transactionHash"]),
            )
        return self._to_receipt(raw, claim_id=int(events[0]["args"]["claimID"]))
