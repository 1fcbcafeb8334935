"""Utility modules."""

from .audit_trail import AuditTrail
from .logging import setup_logging

__all__ = ["AuditTrail", "setup_logging"]
