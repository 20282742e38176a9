from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from laundry_ledger.services import balance_calculator as calc
from laundry_ledger.services.balance_calculator import LedgerView
from laundry_ledger.services.money import is_settled, remaining_due, to_decimal, to_money


T0 = datetime(2026, 3, 1, 9, 0, 0)


def tx(tx_id, tx_type, amount, minutes=0):
    return SimpleNamespace(
        id=tx_id,
        type=tx_type,
        amount=Decimal(str(amount)),
        date=T0 + timedelta(minutes=minutes),
    )


def bill(amount, paid=0):
    return SimpleNamespace(amount=Decimal(str(amount)), paid_amount=Decimal(str(paid)))


class TestMoney:
    def test_round_half_up(self):
        assert to_money("0.005") == Decimal("0.01")
        assert to_money("2.675") == Decimal("2.68")
        assert to_money(Decimal("-1.005")) == Decimal("-1.01")

    def test_floats_are_taken_at_face_value(self):
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_money(0.1 + 0.2) == Decimal("0.30")

    def test_paid_tolerance(self):
        assert is_settled(Decimal("9.99"), Decimal("10.00"))
        assert not is_settled(Decimal("9.98"), Decimal("10.00"))
        assert is_settled(Decimal("12.00"), Decimal("10.00"))

    def test_out_of_range_is_a_value_error(self):
        with pytest.raises(ValueError):
            to_money(Decimal("1e30"))
        with pytest.raises(ValueError):
            to_money("Infinity")

    def test_remaining_due_never_negative(self):
        assert remaining_due(Decimal("10"), Decimal("12")) == Decimal("0.00")
        assert remaining_due(Decimal("10"), Decimal("4")) == Decimal("6.00")


class TestCreditAvailable:
    def test_deposits_minus_both_kinds_of_use(self):
        stream = [
            tx(1, "deposit", 100),
            tx(2, "deposit", 50),
            tx(3, "deposit_used", 30),
            tx(4, "bulk_deposit_used", 20),
            tx(5, "payment", 500),
            tx(6, "bill", 70),
        ]
        assert calc.credit_available(stream) == Decimal("100.00")

    def test_floored_at_zero(self):
        stream = [tx(1, "deposit", 10), tx(2, "deposit_used", 25)]
        assert calc.credit_available(stream) == Decimal("0.00")

    def test_overdraft_is_repaid_by_later_deposits(self):
        # The floor applies to the replayed total, not step by step
        stream = [
            tx(1, "deposit", 10),
            tx(2, "deposit_used", 25, minutes=5),
            tx(3, "deposit", 20, minutes=10),
        ]
        assert calc.credit_available(stream) == Decimal("5.00")

    def test_empty_history(self):
        assert calc.credit_available([]) == Decimal("0.00")


class TestRunningBalance:
    def test_credit_view(self):
        stream = [tx(1, "deposit", 100), tx(2, "deposit_used", 40, minutes=5)]
        balances = [b for _, b in calc.running_balance_series(stream, LedgerView.CREDIT)]
        assert balances == [Decimal("100.00"), Decimal("60.00")]

    def test_bill_view(self):
        stream = [
            tx(1, "deposit", 100),
            tx(2, "bill", 40, minutes=1),
            tx(3, "deposit_used", 40, minutes=2),
            tx(4, "bill", 25, minutes=3),
            tx(5, "payment", 10, minutes=4),
        ]
        balances = [b for _, b in calc.running_balance_series(stream, LedgerView.BILL)]
        assert balances == [
            Decimal("100.00"),
            Decimal("60.00"),
            Decimal("60.00"),
            Decimal("35.00"),
            Decimal("45.00"),
        ]

    def test_views_diverge_with_unpaid_bills_and_credit(self):
        stream = [tx(1, "deposit", 50), tx(2, "bill", 30, minutes=1)]
        credit = calc.running_balance_series(stream, LedgerView.CREDIT)[-1][1]
        billed = calc.running_balance_series(stream, LedgerView.BILL)[-1][1]
        assert credit == Decimal("20.00")
        assert billed == Decimal("20.00")

        stream.append(tx(3, "payment", 30, minutes=2))
        credit = calc.running_balance_series(stream, LedgerView.CREDIT)[-1][1]
        billed = calc.running_balance_series(stream, LedgerView.BILL)[-1][1]
        assert credit != billed

    def test_ties_broken_by_id(self):
        stream = [tx(7, "deposit_used", 30), tx(3, "deposit", 100)]
        series = calc.running_balance_series(stream, LedgerView.CREDIT)
        assert [t.id for t, _ in series] == [3, 7]
        assert series[-1][1] == Decimal("70.00")

    def test_adjustment_entries_can_be_negative(self):
        stream = [tx(1, "bill", 40), tx(2, "bill", -15, minutes=1)]
        series = calc.running_balance_series(stream, LedgerView.BILL)
        assert series[-1][1] == Decimal("-25.00")


class TestClientFigures:
    def test_net_position(self):
        bills = [bill(50, 20), bill(30, 30)]
        stream = [tx(1, "deposit", 10)]
        assert calc.unpaid_due(bills) == Decimal("30.00")
        assert calc.net_position(bills, stream) == Decimal("20.00")

    def test_overpaid_bill_counts_as_nothing_due(self):
        assert calc.unpaid_due([bill(10, 15), bill(5, 0)]) == Decimal("5.00")

    def test_balance_is_amount_minus_deposit(self):
        bills = [bill(40, 40), bill(25, 0)]
        stream = [tx(1, "deposit", 100), tx(2, "deposit_used", 40, minutes=1)]
        figures = calc.client_figures(bills, stream)

        assert figures["amount"] == Decimal("65.00")
        assert figures["deposit"] == Decimal("60.00")
        assert figures["balance"] == figures["amount"] - figures["deposit"]
        assert figures["net_position"] == Decimal("-35.00")
