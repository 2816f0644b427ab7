"""
Inventory Kernel

Shared infrastructure for the asset register:
- Structured logging and typed errors
- Database engine, declarative base, append-only audit entries
- Gap-filling asset code sequence allocation
- Field-level audit diffs for every mutation
"""

__version__ = "0.1.0"
