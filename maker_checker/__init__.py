"""
Maker-Checker Backend-for-Frontend

Dual-control approval layer in front of a banking core platform: gated
operation registry, global toggle, scoped approval inbox and super-checker
escalation, all backed by the platform as system of record.
"""

__version__ = "1.0.0"
