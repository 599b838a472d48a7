"""
Domain models — Pydantic types for Ultrabunt.

All models are re-exported here for convenient access:

    from ultrabunt.core.models import PackageRecord, Backend, OperationResult
"""

from ultrabunt.core.models.action import CommandResult, ErrorKind, OperationResult
from ultrabunt.core.models.package import Backend, Category, PackageRecord

__all__ = [
    # package.py
    "Backend",
    "Category",
    # action.py
    "CommandResult",
    "ErrorKind",
    "OperationResult",
    "PackageRecord",
]
