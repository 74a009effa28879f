"""Amount parsing and deadline tests."""

import asyncio
from decimal import Decimal

import pytest

from topup.core.deadline import run_with_deadline
from topup.core.exceptions import MalformedAmount, ReconciliationTimeout
from topup.core.types import parse_amount
from topup.models.grants import Coin


class TestParseAmount:

    def test_decimal_string(self):
        assert parse_amount("123.45") == Decimal("123.45")

    def test_zero_is_a_value(self):
        value = parse_amount("0")
        assert value == Decimal("0")
        assert value is not None

    def test_int_and_whitespace(self):
        assert parse_amount(500) == Decimal("500")
        assert parse_amount(" 7 ") == Decimal("7")

    @pytest.mark.parametrize("value", ["", "abc", "NaN", "Infinity", None, 1.5, True, ["1"]])
    def test_rejects_malformed(self, value):
        with pytest.raises(MalformedAmount) as exc:
            parse_amount(value, field="spend_limit.amount")
        assert exc.value.field == "spend_limit.amount"


class TestAmountField:
    """Tests for the Amount type on chain payload models."""

    def test_coin_amount_is_decimal(self):
        coin = Coin(denom="uakt", amount="1.5")
        assert coin.amount == Decimal("1.5")
        assert isinstance(coin.amount, Decimal)

    def test_malformed_amount_is_not_a_validation_error(self):
        with pytest.raises(MalformedAmount):
            Coin(denom="uakt", amount="x")

    def test_float_is_rejected(self):
        with pytest.raises(MalformedAmount):
            Coin(denom="uakt", amount=0.1)

    def test_serializes_back_to_chain_string(self):
        assert Coin(denom="uakt", amount="500").model_dump(mode="json") == {"denom": "uakt", "amount": "500"}


class TestRunWithDeadline:

    def test_returns_result(self):
        async def work():
            return 3

        assert asyncio.run(run_with_deadline("work", work(), 1)) == 3

    def test_expiry_raises_reconciliation_timeout(self):
        async def work():
            await asyncio.sleep(5)

        with pytest.raises(ReconciliationTimeout) as exc:
            asyncio.run(run_with_deadline("slow work", work(), 0.05))

        assert exc.value.operation == "slow work"
        assert exc.value.timeout == 0.05

    def test_inner_timeout_error_passes_through(self):
        async def work():
            raise TimeoutError("socket timeout")

        with pytest.raises(TimeoutError, match="socket timeout"):
            asyncio.run(run_with_deadline("work", work(), 1))
