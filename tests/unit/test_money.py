from decimal import Decimal

from pydantic import ValidationError
import pytest

from mentorhub.core.exceptions import ValidationException
from mentorhub.schemas.ledger import TopUpRequest
from mentorhub.utils.money import format_money, session_price, to_amount


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("100", Decimal("100")),
        ("0.01", Decimal("0.01")),
        (7, Decimal("7")),
        (Decimal("12.50"), Decimal("12.50")),
        ("3.100", Decimal("3.100")),
    ],
)
def test_to_amount_accepts(raw, expected):
    assert to_amount(raw) == expected


@pytest.mark.parametrize("raw", ["0", "-1", "abc", "1.234", 1.5, "NaN"])
def test_to_amount_rejects(raw):
    with pytest.raises(ValidationException):
        to_amount(raw)


@pytest.mark.parametrize(
    "rate, minutes, expected",
    [
        ("500.00", 60, "500.00"),
        ("500.00", 30, "250.00"),
        ("100.00", 45, "75.00"),
        # 10 * 50 / 60 = 8.3333...
        ("10.00", 50, "8.33"),
        # 0.01 * 90 / 60 = 0.015 rounds half-up
        ("0.01", 90, "0.02"),
    ],
)
def test_session_price_rounds_half_up(rate, minutes, expected):
    assert session_price(Decimal(rate), minutes) == Decimal(expected)


def test_format_money():
    assert format_money(Decimal("5")) == "5.00"
    assert format_money(Decimal("1.005")) == "1.01"


def test_money_field_serializes_as_string():
    request = TopUpRequest(amount="100", sender_wallet_number="0100")
    assert request.model_dump(by_alias=True) == {
        "amount": "100.00",
        "senderWalletNumber": "0100",
    }


def test_money_field_rejects_garbage():
    with pytest.raises(ValidationError):
        TopUpRequest(amount="ten", sender_wallet_number="0100")
