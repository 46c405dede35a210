#!/usr/bin/env python3
"""
Preview a monthly payroll computation without saving anything.

Builds a payroll record from command-line attendance counts and pay
inputs, runs it through RecalculationService.compute_payroll with the
packaged (or a given) settings file, and prints the breakdown as JSON.

Usage:
    python3 scripts/preview_payroll.py --month 6 --year 2024 \\
        --present 27 --late 1 --absent 1 --on-leave 1 --baseline 15300
    python3 scripts/preview_payroll.py --month 2 --year 2024 --absent 29 \\
        --allowance shift=500 --deduction loan_repayment=1000 --settings tenant.yaml
"""

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _amount(text: str) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a decimal amount: {text!r}")
    if not value.is_finite():
        raise argparse.ArgumentTypeError(f"not a finite amount: {text!r}")
    return value


def _named_amount(text: str) -> tuple[str, Decimal]:
    name, sep, value = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=AMOUNT, got {text!r}")
    return name, _amount(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Preview a payroll computation")
    parser.add_argument("--employee-id", default="preview", help="Employee identifier")
    parser.add_argument("--month", type=int, required=True)
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--present", type=int, default=0)
    parser.add_argument("--absent", type=int, default=0)
    parser.add_argument("--late", type=int, default=0)
    parser.add_argument("--on-leave", type=int, default=0)
    parser.add_argument("--days-in-period", type=int, default=None,
                        help="Override the calendar length of the month")
    parser.add_argument("--baseline", type=_amount, default=None,
                        help="Baseline monthly salary (fallback used when omitted)")
    parser.add_argument("--bonus", type=_amount, default=Decimal("0"))
    parser.add_argument("--overtime-hours", type=_amount, default=None)
    parser.add_argument("--overtime-amount", type=_amount, default=None)
    parser.add_argument("--allowance", type=_named_amount, action="append", default=[],
                        metavar="NAME=AMOUNT", help="Fixed allowance (repeatable)")
    parser.add_argument("--statutory", type=_named_amount, action="append", default=[],
                        metavar="NAME=AMOUNT", help="Statutory base amount override")
    parser.add_argument("--deduction", type=_named_amount, action="append", default=[],
                        metavar="NAME=AMOUNT", help="Discretionary deduction (repeatable)")
    parser.add_argument("--settings", type=Path, default=None,
                        help="Payroll settings YAML (packaged defaults when omitted)")
    parser.add_argument("--log-level", default="WARNING",
                        help="Log level for structured logs on stderr")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    import yaml

    from payroll_config import get_default_settings, load_settings
    from payroll_engines import Attendance, Overtime
    from payroll_kernel.exceptions import PayrollKernelError
    from payroll_kernel.logging_config import configure_logging
    from payroll_modules.payroll import PayrollPeriod, PayrollRecord
    from payroll_modules.payroll.serialization import breakdown_to_dict
    from payroll_services import RecalculationService

    configure_logging(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                      stream=sys.stderr)

    try:
        settings = load_settings(args.settings) if args.settings else get_default_settings()
    except (OSError, yaml.YAMLError, ValueError) as exc:
        print(json.dumps({"error": getattr(exc, "code", "INVALID_SETTINGS"),
                          "message": str(exc)}), file=sys.stderr)
        return 1

    overtime = None
    if args.overtime_amount is not None or args.overtime_hours is not None:
        overtime = Overtime(
            hours=args.overtime_hours or Decimal("0"),
            amount=args.overtime_amount,
        )

    try:
        record = PayrollRecord(
            employee_id=args.employee_id,
            period=PayrollPeriod(month=args.month, year=args.year),
            attendance=Attendance(
                present=args.present,
                absent=args.absent,
                late=args.late,
                on_leave=args.on_leave,
            ),
            baseline_salary=args.baseline,
            fixed_allowances=dict(args.allowance),
            bonus=args.bonus,
            overtime=overtime,
            statutory_overrides=dict(args.statutory),
            discretionary_deductions=dict(args.deduction),
            days_in_period=args.days_in_period,
        )
        computed = RecalculationService().compute_payroll(record, settings)
    except (PayrollKernelError, ValueError) as exc:
        print(json.dumps({"error": getattr(exc, "code", "INVALID_INPUT"),
                          "message": str(exc)}), file=sys.stderr)
        return 1

    output = {
        "employee_id": computed.employee_id,
        "period": computed.period.label,
        "breakdown": breakdown_to_dict(computed.breakdown),
    }
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
