"""
Job Cost Kernel

Shared infrastructure for the construction job-costing core:
- Structured JSON logging
- Typed exceptions with machine-readable codes
- Decimal money primitives and an injectable clock
- SQLAlchemy declarative base, engine, and the tabular data store
- Injected user notifications
"""

__version__ = "0.1.0"
