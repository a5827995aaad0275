"""Dispatch bridge from script calls to the arbitrary-precision primitives.

Every handler takes its operands positionally, followed by an optional
scale. A missing or ``None`` scale is resolved from the injected scale
source once per call; an explicit scale applies to that call only. Results
are returned as a one-element list, and any failure is re-raised as a single
``ScriptError`` of the form ``bcmath:<operation>() failed (<reason>)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable
import logging
import math

from bcbridge import bignum
from bcbridge.error_msg import ScriptError
from bcbridge.scale import ScaleSource, current_default_scale

NAMESPACE = "bcmath"

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    MOD = "mod"
    POW = "pow"
    POWMOD = "powmod"
    SQRT = "sqrt"
    COMP = "comp"


@dataclass(frozen=True)
class OperationSignature:
    """Operand names and primitive bound to one exposed operation."""

    operation: Operation
    operands: tuple[str, ...]
    primitive: Callable[..., Any]
    description: str


SIGNATURES: dict[Operation, OperationSignature] = {
    signature.operation: signature
    for signature in (
        OperationSignature(Operation.ADD, ("lhs", "rhs"), bignum.bcadd, "Add two decimals"),
        OperationSignature(Operation.SUB, ("lhs", "rhs"), bignum.bcsub, "Subtract rhs from lhs"),
        OperationSignature(Operation.MUL, ("lhs", "rhs"), bignum.bcmul, "Multiply two decimals"),
        OperationSignature(
            Operation.DIV, ("dividend", "divisor"), bignum.bcdiv, "Divide dividend by divisor"
        ),
        OperationSignature(
            Operation.MOD, ("dividend", "divisor"), bignum.bcmod, "Remainder of dividend by divisor"
        ),
        OperationSignature(
            Operation.POW, ("base", "exponent"), bignum.bcpow, "Raise base to an integral exponent"
        ),
        OperationSignature(
            Operation.POWMOD,
            ("base", "exponent", "modulus"),
            bignum.bcpowmod,
            "Raise base to exponent, reduced by modulus",
        ),
        OperationSignature(Operation.SQRT, ("operand",), bignum.bcsqrt, "Square root"),
        OperationSignature(
            Operation.COMP, ("lhs", "rhs"), bignum.bccomp, "Compare two decimals (-1, 0 or 1)"
        ),
    )
}

_unbound = [operation.value for operation in Operation if operation not in SIGNATURES]
if _unbound:
    raise RuntimeError(f"Operations without a primitive: {', '.join(_unbound)}")


def normalize_operand(value: Any, name: str) -> str:
    """Convert a script value to decimal text; validity is left to the primitive."""
    if isinstance(value, str):
        return value
    if value is None:
        raise bignum.MalformedNumberError(f"missing argument '{name}'")
    if isinstance(value, bool):
        raise bignum.MalformedNumberError(f"argument '{name}' must be a number, got bool")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise bignum.MalformedNumberError(f"argument '{name}' is not finite: {value!r}")
        value = Decimal(repr(value))
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise bignum.MalformedNumberError(f"argument '{name}' is not finite: {value!r}")
        return format(value, "f")
    raise bignum.MalformedNumberError(
        f"argument '{name}' must be a number, got {type(value).__name__}"
    )


def normalize_scale(value: Any) -> int | None:
    """Coerce an explicit scale argument; ``None`` means "use the default"."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise bignum.DomainError("scale must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return int(value)
    raise bignum.DomainError(f"scale must be an integer, got {value!r}")


class BCMathBridge:
    """Stateless adapter from script calls to ``bcbridge.bignum``."""

    def __init__(self, scale_source: ScaleSource | None = None, namespace: str = NAMESPACE):
        self.namespace = namespace
        self._scale_source = scale_source or current_default_scale

    def resolve_scale(self, scale: Any = None) -> int:
        explicit = normalize_scale(scale)
        if explicit is None:
            return self._scale_source()
        return explicit

    def dispatch(self, operation: Operation | str, *args: Any) -> list[Any]:
        operation = Operation(operation)
        signature = SIGNATURES[operation]
        arity = len(signature.operands)
        try:
            operands = [
                normalize_operand(args[index] if index < len(args) else None, name)
                for index, name in enumerate(signature.operands)
            ]
            scale = self.resolve_scale(args[arity] if len(args) > arity else None)
            result = signature.primitive(*operands, scale)
        except Exception as exc:  # noqa: BLE001
            logger.debug("%s:%s() rejected %r: %s", self.namespace, operation.value, args, exc)
            raise ScriptError(
                f"{self.namespace}:{operation.value}() failed ({exc})"
            ) from exc

        logger.debug("%s:%s%r -> %r", self.namespace, operation.value, tuple(args), result)
        return [result]

    def handler(self, operation: Operation | str) -> Callable[..., list[Any]]:
        """Return the script-facing handler bound to one operation."""
        operation = Operation(operation)

        def _handler(*args: Any) -> list[Any]:
            return self.dispatch(operation, *args)

        _handler.__name__ = f"bc{operation.value}"
        _handler.__qualname__ = f"{type(self).__name__}.bc{operation.value}"
        _handler.__doc__ = SIGNATURES[operation].description
        return _handler

    def handlers(self) -> dict[Operation, Callable[..., list[Any]]]:
        return {operation: self.handler(operation) for operation in Operation}
