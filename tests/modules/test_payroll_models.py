"""
Tests for payroll record DTOs.

Covers:
- Amount maps are read-only copies of the caller's input
- A locked record cannot be changed through a retained input dict
"""

from dataclasses import replace
from decimal import Decimal

import pytest

from payroll_modules.payroll import PaymentStatus, transition
from payroll_modules.payroll.models import AMOUNT_MAP_FIELDS


class TestAmountMaps:

    @pytest.mark.parametrize("name", AMOUNT_MAP_FIELDS)
    def test_source_dict_changes_not_seen(self, make_record, name):
        source = {"shift": Decimal("500")}
        record = make_record(**{name: source})
        source["shift"] = Decimal("9999")
        source["extra"] = Decimal("1")
        assert getattr(record, name) == {"shift": Decimal("500")}

    @pytest.mark.parametrize("name", AMOUNT_MAP_FIELDS)
    def test_map_is_read_only(self, make_record, name):
        record = make_record(**{name: {"shift": Decimal("500")}})
        with pytest.raises(TypeError):
            getattr(record, name)["shift"] = Decimal("9999")
        with pytest.raises(TypeError):
            del getattr(record, name)["shift"]

    def test_defaults_are_empty_and_read_only(self, make_record):
        record = make_record()
        assert record.fixed_allowances == {}
        with pytest.raises(TypeError):
            record.fixed_allowances["shift"] = Decimal("1")

    def test_replace_copies_new_map(self, make_record):
        record = make_record(fixed_allowances={"shift": Decimal("500")})
        changes = {"shift": Decimal("700")}
        edited = replace(record, fixed_allowances=changes)
        changes["shift"] = Decimal("0")
        assert edited.fixed_allowances == {"shift": Decimal("700")}
        assert record.fixed_allowances == {"shift": Decimal("500")}

    def test_paid_record_unchanged_through_caller_dict(
        self, make_record, service, settings, auth, clock
    ):
        allowances = {"shift": Decimal("500")}
        deductions = {"loan_repayment": Decimal("1000")}
        computed = service.compute_payroll(
            make_record(
                fixed_allowances=allowances,
                discretionary_deductions=deductions,
                status=PaymentStatus.PROCESSING,
            ),
            settings,
        )
        paid = transition(computed, PaymentStatus.PAID, auth, clock)
        gross, net = paid.gross_salary, paid.net_salary

        allowances["shift"] = Decimal("50000")
        deductions.clear()

        assert paid.fixed_allowances == {"shift": Decimal("500")}
        assert paid.discretionary_deductions == {"loan_repayment": Decimal("1000")}
        recomputed = service.compute_payroll(paid, settings)
        assert (recomputed.gross_salary, recomputed.net_salary) == (gross, net)
