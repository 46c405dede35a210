"""
payroll_modules -- business modules built on the payroll kernel and engines.

Each sub-package owns its value objects, workflow definitions, lifecycle
rules and persistence.  ``payroll_modules.payroll`` is the monthly payroll
record module.
"""
