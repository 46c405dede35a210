"""
payroll_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure payroll engines with the
    lifecycle rules of ``payroll_modules.payroll``.  This is the only layer
    that reads the clock.

Architecture position:
    Services -- orchestration over engines + modules + kernel.

    Dependency direction:
        payroll_services/ -> payroll_modules/  (allowed)
        payroll_services/ -> payroll_engines/  (allowed)
        payroll_engines/  -> payroll_services/ (FORBIDDEN)
        payroll_kernel/   -> payroll_services/ (FORBIDDEN)
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("services")

from payroll_services.recalculation_service import (
    BulkFailure,
    BulkResult,
    RecalculationService,
    compute_payroll,
)

__all__ = [
    "BulkFailure",
    "BulkResult",
    "RecalculationService",
    "compute_payroll",
]
