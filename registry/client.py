"""
Claim registry boundary.

The on-chain AttributeRegistrySig contract is an external collaborator. The
core talks to it only through ``ClaimRegistryClient``; concrete clients may be
slow and may fail, and failures are surfaced to the caller without retries.
``InMemoryClaimRegistry`` mirrors the contract's bookkeeping for tests and
local demos.
"""

import hashlib
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from zk.errors import RevertError
from zk.field import validate

logger = logging.getLogger(__name__)

ProofCheck = Callable[[Sequence[int], Sequence[Sequence[int]], Sequence[int], Sequence[int]], bool]


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    block_number: int
    gas_used: int = 0
    status: int = 1


@dataclass(frozen=True)
class Claim:
    """Registry record for (subject, attribute name)"""
    issuer_ax: int
    issuer_ay: int
    commitment: int
    exists: bool

    @classmethod
    def empty(cls) -> 'Claim':
        return cls(0, 0, 0, False)

    def as_tuple(self) -> Tuple[int, int, int, bool]:
        return (self.issuer_ax, self.issuer_ay, self.commitment, self.exists)


class ClaimRegistryClient(ABC):
    """Call surface of the registry contract"""

    @abstractmethod
    def submit_claim(self, attribute_name: str, issuer_ax: int, issuer_ay: int,
                     message_hash: int, commitment: int, a: Sequence[int],
                     b: Sequence[Sequence[int]], c: Sequence[int]) -> TransactionReceipt:
        """addClaim(name, issuerAx, issuerAy, messageHash, commitmentHash, a, b, c)"""

    @abstractmethod
    def register_issuer(self, issuer_identity: str, ax: int, ay: int) -> TransactionReceipt:
        """registerIssuer(issuerAddress, ax, ay)"""

    @abstractmethod
    def get_claim(self, subject_id: str, attribute_name: str) -> Claim:
        """getClaim(subjectAddress, name)"""


class InMemoryClaimRegistry(ClaimRegistryClient):
    """Local stand-in for the registry contract.

    ``sender`` plays the role of ``msg.sender``: claims are stored under the
    submitting subject. An optional ``proof_check`` receives
    ``(a, b, c, [commitment, ax, ay, messageHash])`` and plays the verifier
    contract; when it returns False the call reverts.
    """

    def __init__(self, sender: str, proof_check: Optional[ProofCheck] = None):
        self.sender = sender
        self._proof_check = proof_check
        self._issuers: Dict[str, Tuple[int, int]] = {}
        self._claims: Dict[Tuple[str, str], Claim] = {}
        self._block_number = 0
        self._lock = threading.Lock()

    def _receipt(self, payload: str) -> TransactionReceipt:
        self._block_number += 1
        tx_hash = '0x' + hashlib.sha256(
            f"{self._block_number}:{payload}".encode()).hexdigest()
        return TransactionReceipt(tx_hash=tx_hash, block_number=self._block_number)

    def _is_registered_key(self, ax: int, ay: int) -> bool:
        return (ax, ay) in self._issuers.values()

    def register_issuer(self, issuer_identity: str, ax: int, ay: int) -> TransactionReceipt:
        key = (int(validate(ax)), int(validate(ay)))
        with self._lock:
            if issuer_identity in self._issuers:
                raise RevertError("registerIssuer reverted", reason="Issuer already registered")
            self._issuers[issuer_identity] = key
            receipt = self._receipt(f"registerIssuer:{issuer_identity}")
        logger.info(f"Registered issuer {issuer_identity} in block {receipt.block_number}")
        return receipt

    def submit_claim(self, attribute_name: str, issuer_ax: int, issuer_ay: int,
                     message_hash: int, commitment: int, a: Sequence[int],
                     b: Sequence[Sequence[int]], c: Sequence[int]) -> TransactionReceipt:
        if not attribute_name:
            raise RevertError("addClaim reverted", reason="Empty attribute name")

        key = (self.sender, attribute_name)
        with self._lock:
            if not self._is_registered_key(int(issuer_ax), int(issuer_ay)):
                raise RevertError("addClaim reverted", reason="Issuer not registered")
            if key in self._claims:
                raise RevertError("addClaim reverted", reason="Claim already exists")

            signals = [int(commitment), int(issuer_ax), int(issuer_ay), int(message_hash)]
            if self._proof_check is not None and not self._proof_check(a, b, c, signals):
                raise RevertError("addClaim reverted", reason="Invalid proof")

            self._claims[key] = Claim(int(issuer_ax), int(issuer_ay), int(commitment), True)
            receipt = self._receipt(f"addClaim:{self.sender}:{attribute_name}")
        logger.info(
            f"Stored claim {attribute_name!r} for {self.sender} in block {receipt.block_number}")
        return receipt

    def get_claim(self, subject_id: str, attribute_name: str) -> Claim:
        with self._lock:
            return self._claims.get((subject_id, attribute_name), Claim.empty())
