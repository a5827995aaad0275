"""Arbitrary-precision decimal primitives with bc-style semantics.

Operands are decimal strings (``[+-]?digits[.digits]``). Every result is
computed exactly on Python integers, truncated toward zero to the requested
scale and padded with zeros to exactly ``scale`` fractional digits.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import re

_NUMBER_RE = re.compile(r"([+-]?)([0-9]*)(?:\.([0-9]*))?")


class BCMathError(ArithmeticError):
    """Base class for failures signalled by the arithmetic primitives."""


class MalformedNumberError(BCMathError, ValueError):
    """Operand is not a well-formed decimal numeral."""


class DomainError(BCMathError, ValueError):
    """Operand or scale outside the domain of the operation."""


class DivisionByZeroError(BCMathError, ZeroDivisionError):
    """Zero divisor or modulus."""


@dataclass(frozen=True)
class BcNumber:
    """Exact decimal value ``digits / 10**scale``."""

    digits: int
    scale: int

    @classmethod
    def parse(cls, text: str, argument: str = "num") -> "BcNumber":
        if not isinstance(text, str):
            raise MalformedNumberError(
                f"argument '{argument}' must be a string, got {type(text).__name__}"
            )
        match = _NUMBER_RE.fullmatch(text)
        if match is None or not (match.group(2) or match.group(3)):
            raise MalformedNumberError(f"argument '{argument}' is not well-formed: {text!r}")
        sign, integer, fraction = match.group(1), match.group(2), match.group(3) or ""
        digits = int((integer or "0") + fraction)
        return cls(-digits if sign == "-" else digits, len(fraction))

    def at_scale(self, scale: int) -> int:
        """Digits of this value truncated (or extended) to ``scale``."""
        return _rescale(self.digits, self.scale, scale)

    def integral(self, argument: str) -> int:
        unit = 10 ** self.scale
        if self.digits % unit:
            raise DomainError(f"{argument} cannot have a fractional part")
        return self.digits // unit


def _tdiv(numerator: int, denominator: int) -> int:
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _rescale(digits: int, from_scale: int, to_scale: int) -> int:
    if to_scale >= from_scale:
        return digits * 10 ** (to_scale - from_scale)
    return _tdiv(digits, 10 ** (from_scale - to_scale))


def _format(digits: int, scale: int) -> str:
    text = str(abs(digits)).rjust(scale + 1, "0")
    if scale:
        text = f"{text[:-scale]}.{text[-scale:]}"
    return f"-{text}" if digits < 0 else text


def check_scale(scale: int) -> int:
    """Validate a resolved scale; the only bound enforced is ``scale >= 0``."""
    if isinstance(scale, bool) or not isinstance(scale, int):
        raise DomainError(f"scale must be an integer, got {type(scale).__name__}")
    if scale < 0:
        raise DomainError(f"scale must be greater than or equal to 0, got {scale}")
    return scale


def _aligned(lhs: BcNumber, rhs: BcNumber) -> tuple[int, int, int]:
    common = max(lhs.scale, rhs.scale)
    return lhs.at_scale(common), rhs.at_scale(common), common


def bcadd(lhs: str, rhs: str, scale: int) -> str:
    check_scale(scale)
    a, b, common = _aligned(BcNumber.parse(lhs, "lhs"), BcNumber.parse(rhs, "rhs"))
    return _format(_rescale(a + b, common, scale), scale)


def bcsub(lhs: str, rhs: str, scale: int) -> str:
    check_scale(scale)
    a, b, common = _aligned(BcNumber.parse(lhs, "lhs"), BcNumber.parse(rhs, "rhs"))
    return _format(_rescale(a - b, common, scale), scale)


def bcmul(lhs: str, rhs: str, scale: int) -> str:
    check_scale(scale)
    a = BcNumber.parse(lhs, "lhs")
    b = BcNumber.parse(rhs, "rhs")
    return _format(_rescale(a.digits * b.digits, a.scale + b.scale, scale), scale)


def bcdiv(dividend: str, divisor: str, scale: int) -> str:
    check_scale(scale)
    a = BcNumber.parse(dividend, "dividend")
    b = BcNumber.parse(divisor, "divisor")
    if b.digits == 0:
        raise DivisionByZeroError("Division by zero")
    quotient = _tdiv(a.digits * 10 ** (b.scale + scale), b.digits * 10 ** a.scale)
    return _format(quotient, scale)


def bcmod(dividend: str, divisor: str, scale: int) -> str:
    """Remainder of the truncated integer quotient; takes the dividend's sign."""
    check_scale(scale)
    a, b, common = _aligned(
        BcNumber.parse(dividend, "dividend"), BcNumber.parse(divisor, "divisor")
    )
    if b == 0:
        raise DivisionByZeroError("Modulo by zero")
    remainder = a - _tdiv(a, b) * b
    return _format(_rescale(remainder, common, scale), scale)


def bcpow(base: str, exponent: str, scale: int) -> str:
    check_scale(scale)
    number = BcNumber.parse(base, "base")
    power = BcNumber.parse(exponent, "exponent").integral("exponent")
    if power >= 0:
        return _format(
            _rescale(number.digits**power, number.scale * power, scale), scale
        )
    if number.digits == 0:
        raise DivisionByZeroError("Negative power of zero")
    denominator = number.digits ** (-power)
    numerator = 10 ** (number.scale * (-power) + scale)
    return _format(_tdiv(numerator, denominator), scale)


def bcpowmod(base: str, exponent: str, modulus: str, scale: int) -> str:
    """Modular exponentiation on integral operands.

    The remainder follows truncated division, so its sign is that of
    ``base ** exponent``; the sign of the modulus does not matter.
    """
    check_scale(scale)
    number = BcNumber.parse(base, "base").integral("base")
    power = BcNumber.parse(exponent, "exponent").integral("exponent")
    mod = BcNumber.parse(modulus, "modulus").integral("modulus")
    if power < 0:
        raise DomainError("exponent must be greater than or equal to 0")
    if mod == 0:
        raise DivisionByZeroError("Modulo by zero")
    result = pow(abs(number), power, abs(mod))
    if number < 0 and power % 2:
        result = -result
    return _format(result * 10**scale, scale)


def bcsqrt(operand: str, scale: int) -> str:
    check_scale(scale)
    number = BcNumber.parse(operand, "operand")
    if number.digits < 0:
        raise DomainError("Square root of negative number")
    # isqrt(floor(x)) == floor(sqrt(x)) for x >= 0, so truncating first is exact
    radicand = _rescale(number.digits, number.scale, 2 * scale)
    return _format(math.isqrt(radicand), scale)


def bccomp(lhs: str, rhs: str, scale: int) -> int:
    """Compare both operands truncated to ``scale``; returns -1, 0 or 1."""
    check_scale(scale)
    a = BcNumber.parse(lhs, "lhs").at_scale(scale)
    b = BcNumber.parse(rhs, "rhs").at_scale(scale)
    return (a > b) - (a < b)
