from __future__ import annotations

import pytest

from bcbridge import bignum
from bcbridge.bignum import (
    BcNumber,
    DivisionByZeroError,
    DomainError,
    MalformedNumberError,
)


@pytest.mark.unit
def test_parse_accepts_bc_grammar():
    assert BcNumber.parse("12.340") == BcNumber(12340, 3)
    assert BcNumber.parse("-0.5") == BcNumber(-5, 1)
    assert BcNumber.parse("+.5") == BcNumber(5, 1)
    assert BcNumber.parse("5.") == BcNumber(5, 0)
    assert BcNumber.parse("007") == BcNumber(7, 0)


@pytest.mark.unit
@pytest.mark.parametrize("text", ["", ".", "-", "abc", "1e5", " 1", "1 ", "1.2.3", "0x10", "١"])
def test_parse_rejects_malformed(text):
    with pytest.raises(MalformedNumberError):
        BcNumber.parse(text)


@pytest.mark.unit
def test_parse_rejects_non_strings():
    with pytest.raises(MalformedNumberError, match="must be a string"):
        BcNumber.parse(12)  # type: ignore[arg-type]


@pytest.mark.unit
def test_add_sub_truncate_and_pad():
    assert bignum.bcadd("1", "2", 0) == "3"
    assert bignum.bcadd("1.234", "5", 2) == "6.23"
    assert bignum.bcadd("1", "2", 3) == "3.000"
    assert bignum.bcadd("-1.5", "1.5", 2) == "0.00"
    assert bignum.bcsub("1", "3", 1) == "-2.0"
    assert bignum.bcsub("0", "0.001", 2) == "0.00"
    assert bignum.bcsub("-1.999", "0", 2) == "-1.99"


@pytest.mark.unit
def test_mul():
    assert bignum.bcmul("1.5", "2", 1) == "3.0"
    assert bignum.bcmul("-0.5", "0.5", 3) == "-0.250"
    assert bignum.bcmul("1.25", "1.25", 2) == "1.56"
    assert bignum.bcmul("123456789012345678901234567890", "10", 0) == (
        "1234567890123456789012345678900"
    )


@pytest.mark.unit
def test_div_truncates_toward_zero():
    assert bignum.bcdiv("1", "3", 5) == "0.33333"
    assert bignum.bcdiv("-7", "2", 0) == "-3"
    assert bignum.bcdiv("10", "4", 2) == "2.50"
    assert bignum.bcdiv("1", "-8", 3) == "-0.125"
    with pytest.raises(DivisionByZeroError, match="Division by zero"):
        bignum.bcdiv("1", "0.00", 2)


@pytest.mark.unit
def test_mod_takes_dividend_sign():
    assert bignum.bcmod("10", "3", 0) == "1"
    assert bignum.bcmod("-7", "2", 0) == "-1"
    assert bignum.bcmod("7", "-3", 0) == "1"
    assert bignum.bcmod("5.7", "1.3", 1) == "0.5"
    assert bignum.bcmod("10", "3", 2) == "1.00"
    with pytest.raises(DivisionByZeroError, match="Modulo by zero"):
        bignum.bcmod("1", "0", 0)


@pytest.mark.unit
def test_pow():
    assert bignum.bcpow("2", "10", 0) == "1024"
    assert bignum.bcpow("1.5", "2", 2) == "2.25"
    assert bignum.bcpow("1.5", "2", 1) == "2.2"
    assert bignum.bcpow("2", "-2", 4) == "0.2500"
    assert bignum.bcpow("-2", "3", 0) == "-8"
    assert bignum.bcpow("0", "0", 0) == "1"
    assert bignum.bcpow("2", "2.0", 0) == "4"
    with pytest.raises(DomainError, match="fractional part"):
        bignum.bcpow("2", "1.5", 0)
    with pytest.raises(DivisionByZeroError, match="Negative power of zero"):
        bignum.bcpow("0", "-1", 0)


@pytest.mark.unit
def test_powmod():
    assert bignum.bcpowmod("2", "10", "100", 0) == "24"
    assert bignum.bcpowmod("2", "10", "100", 2) == "24.00"
    assert bignum.bcpowmod("-2", "3", "5", 0) == "-3"
    assert bignum.bcpowmod("3", "0", "7", 0) == "1"
    assert bignum.bcpowmod("5", "3", "1", 0) == "0"
    with pytest.raises(DomainError, match="exponent must be greater than or equal to 0"):
        bignum.bcpowmod("2", "-1", "5", 0)
    with pytest.raises(DomainError, match="base cannot have a fractional part"):
        bignum.bcpowmod("2.5", "2", "5", 0)
    with pytest.raises(DivisionByZeroError, match="Modulo by zero"):
        bignum.bcpowmod("2", "3", "0", 0)


@pytest.mark.unit
def test_sqrt():
    assert bignum.bcsqrt("4", 0) == "2"
    assert bignum.bcsqrt("2", 3) == "1.414"
    assert bignum.bcsqrt("0.25", 1) == "0.5"
    assert bignum.bcsqrt("2.25", 0) == "1"
    assert bignum.bcsqrt("0", 2) == "0.00"
    with pytest.raises(DomainError, match="Square root of negative number"):
        bignum.bcsqrt("-1", 0)


@pytest.mark.unit
def test_comp_compares_at_scale():
    assert bignum.bccomp("1", "2", 0) == -1
    assert bignum.bccomp("2", "1", 0) == 1
    assert bignum.bccomp("1.0001", "1", 2) == 0
    assert bignum.bccomp("1.0001", "1", 4) == 1
    assert bignum.bccomp("-0.001", "0", 2) == 0


@pytest.mark.unit
def test_scale_validation():
    with pytest.raises(DomainError, match="greater than or equal to 0"):
        bignum.bcadd("1", "1", -1)
    with pytest.raises(DomainError, match="must be an integer"):
        bignum.bcadd("1", "1", True)  # type: ignore[arg-type]
    assert bignum.check_scale(0) == 0
