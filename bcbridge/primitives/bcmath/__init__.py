"""
bcmath namespace for bcbridge primitives

Exposes arbitrary-precision decimal arithmetic to scripts as
``bcmath.add``, ``bcmath.sub``, ``bcmath.mul``, ``bcmath.div``,
``bcmath.mod``, ``bcmath.pow``, ``bcmath.powmod``, ``bcmath.sqrt`` and
``bcmath.comp``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping
import logging

from bcbridge.language import RenderingContext, resolve_language_code
from bcbridge.primitives.api import AritySpec, KernelFn, PrimitiveSpec
from bcbridge.primitives.bcmath.bridge import (
    NAMESPACE,
    SIGNATURES,
    BCMathBridge,
    Operation,
)
from bcbridge.scale import ScaleSource

logger = logging.getLogger(__name__)

PRIMITIVE_SPECS: Mapping[str, PrimitiveSpec] = MappingProxyType(
    {
        operation.value: PrimitiveSpec(
            name=operation.value,
            namespace=NAMESPACE,
            kind="sequence",
            arity=AritySpec.variadic(min_args=len(SIGNATURES[operation].operands)),
            kernel_name=f"{NAMESPACE}.{operation.value}",
            description=SIGNATURES[operation].description,
        )
        for operation in Operation
    }
)


@dataclass(frozen=True)
class InterfaceRegistration:
    """Outcome of registering the namespace with a host."""

    name: str
    specs: Mapping[str, PrimitiveSpec]
    functions: Mapping[str, KernelFn] = field(compare=False)
    options: Mapping[str, str] = field(default_factory=dict)


def register(
    context: RenderingContext | None = None,
    scale_source: ScaleSource | None = None,
) -> InterfaceRegistration:
    """Bind every operation to a bridge handler and resolve the language tag."""
    lang = resolve_language_code(context)
    bridge = BCMathBridge(scale_source)
    functions = {operation.value: handler for operation, handler in bridge.handlers().items()}
    logger.debug("Registered %s interface (lang=%s)", NAMESPACE, lang)
    return InterfaceRegistration(
        name=NAMESPACE,
        specs=PRIMITIVE_SPECS,
        functions=MappingProxyType(functions),
        options=MappingProxyType({"lang": lang}),
    )


def list_primitives() -> dict[str, str]:
    """List all primitives available in this namespace"""
    return {name: spec.description for name, spec in PRIMITIVE_SPECS.items()}


__all__ = [
    "BCMathBridge",
    "InterfaceRegistration",
    "NAMESPACE",
    "Operation",
    "PRIMITIVE_SPECS",
    "list_primitives",
    "register",
]
