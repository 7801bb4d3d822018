"""Claim registry clients."""

from .client import Claim, ClaimRegistryClient, InMemoryClaimRegistry, TransactionReceipt

__all__ = ['Claim', 'ClaimRegistryClient', 'InMemoryClaimRegistry', 'TransactionReceipt']
