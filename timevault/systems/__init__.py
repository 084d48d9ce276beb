"""Ledger systems: clocks and state fingerprinting."""

from timevault.systems.clock import ManualClock, SystemClock
from timevault.systems.fingerprint import ledger_fingerprint

__all__ = ["ManualClock", "SystemClock", "ledger_fingerprint"]
