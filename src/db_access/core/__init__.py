"""Core database access layer."""

from .connection import ConnectionHandle
from .pagination import Pagination
from .prefix import PrefixRewriter
from .registry import ConnectionRegistry
from .statement import InstrumentedStatement
from .template_cache import QueryTemplateCache
from .transaction import TransactionLedger

__all__ = [
    "ConnectionHandle",
    "ConnectionRegistry",
    "InstrumentedStatement",
    "Pagination",
    "PrefixRewriter",
    "QueryTemplateCache",
    "TransactionLedger",
]
