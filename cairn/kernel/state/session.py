"""
Session state - who is using the client right now.

Authentication happens in the wallet; this only records the address the
wallet reported so views can tell "mine" from "theirs".
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from web3 import Web3


@dataclass
class SessionState:
    wallet_address: Optional[str] = None
    started_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.wallet_address is not None

    def start(self, wallet_address: str) -> None:
        if not Web3.is_address(wallet_address):
            raise ValueError(f"Not a wallet address: {wallet_address!r}")
        self.wallet_address = Web3.to_checksum_address(wallet_address)
        self.started_at = datetime.now(timezone.utc)

    def end(self) -> None:
        self.wallet_address = None
        self.started_at = None
