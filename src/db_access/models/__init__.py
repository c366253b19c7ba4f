"""Pydantic models for connection settings, query templates and results."""

from .config import ConnectionConfig
from .output import ExecutionOutput, PageNavigation
from .query import (
    Navigation,
    NavigationValue,
    QueryCompiler,
    QueryDescriptor,
    QueryLogEntry,
)

__all__ = [
    "ConnectionConfig",
    "ExecutionOutput",
    "PageNavigation",
    "Navigation",
    "NavigationValue",
    "QueryCompiler",
    "QueryDescriptor",
    "QueryLogEntry",
]
