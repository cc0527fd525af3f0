"""
Durable storage of confirmed entries.
"""
from .ledger import InMemoryLedger, JsonFileLedger, Ledger, SupabaseLedger, build_ledger
from .gateway import PersistenceGateway, build_gateway

__all__ = [
    "InMemoryLedger",
    "JsonFileLedger",
    "Ledger",
    "SupabaseLedger",
    "build_ledger",
    "PersistenceGateway",
    "build_gateway",
]
