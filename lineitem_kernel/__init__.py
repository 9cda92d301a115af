"""
Line-Item Kernel - shared foundation for line-item cost control.

Provides:
- Immutable domain records (estimate line items, quotes, expenses)
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
"""

__version__ = "0.1.0"
