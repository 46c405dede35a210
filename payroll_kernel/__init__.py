"""
Payroll Kernel

Shared foundations for the payroll computation and lifecycle engine:
- Structured logging with request-scoped context
- Typed exceptions with machine-readable codes
- Injectable clock
- Workflow (state machine) value objects
- Sanctioned money rounding
- SQLAlchemy base and engine management for the persistence boundary
"""

__version__ = "0.1.0"
