"""Deterministic primitive registration and resolution registry."""

from __future__ import annotations

from collections import OrderedDict
from types import ModuleType
from typing import Mapping
import logging

from bcbridge.language import RenderingContext
from bcbridge.primitives import bcmath
from bcbridge.primitives.api import KernelFn, PrimitiveSpec, validate_spec
from bcbridge.scale import ScaleSource

logger = logging.getLogger(__name__)

# Static namespace table: name -> module exposing register(context, scale_source)
NAMESPACES: Mapping[str, ModuleType] = {
    bcmath.NAMESPACE: bcmath,
}


class PrimitiveRegistry:
    """Registry with deterministic namespace loading and name resolution."""

    def __init__(
        self,
        context: RenderingContext | None = None,
        scale_source: ScaleSource | None = None,
        namespaces: Mapping[str, ModuleType] | None = None,
    ) -> None:
        self.context = context
        self.scale_source = scale_source
        self._namespace_modules: dict[str, ModuleType] = dict(
            NAMESPACES if namespaces is None else namespaces
        )
        self._specs_by_qualified: OrderedDict[str, PrimitiveSpec] = OrderedDict()
        self._kernels_by_name: dict[str, KernelFn] = {}
        self._specs_by_namespace: dict[str, OrderedDict[str, PrimitiveSpec]] = {}
        self._options_by_namespace: dict[str, dict[str, str]] = {}
        self._import_order: list[str] = []
        self._loaded_namespaces: set[str] = set()

        for namespace in sorted(self._namespace_modules):
            self._load_namespace(namespace)

    @property
    def imported_namespaces(self) -> tuple[str, ...]:
        return tuple(self._import_order)

    def _load_namespace(self, namespace: str) -> None:
        if namespace in self._loaded_namespaces:
            return

        module = self._namespace_modules.get(namespace)
        if module is None:
            raise ValueError(f"Unknown primitive namespace: {namespace}")

        registration = module.register(self.context, self.scale_source)
        if registration.name != namespace:
            raise ValueError(
                f"Namespace module for '{namespace}' registered as '{registration.name}'"
            )
        for primitive_name in registration.specs:
            spec = registration.specs[primitive_name]
            self.register(spec, registration.functions[primitive_name])

        self._options_by_namespace[namespace] = dict(registration.options)
        self._loaded_namespaces.add(namespace)
        logger.debug(
            "Loaded namespace %s (%d primitives, options=%s)",
            namespace,
            len(registration.specs),
            self._options_by_namespace[namespace],
        )

    def register(self, spec: PrimitiveSpec, kernel: KernelFn) -> None:
        validate_spec(spec)

        qualified_name = spec.qualified_name
        if qualified_name in self._specs_by_qualified:
            raise ValueError(f"Primitive already registered: {qualified_name}")

        if spec.kernel_name in self._kernels_by_name:
            raise ValueError(f"Kernel name already registered: {spec.kernel_name}")

        if not callable(kernel):
            raise TypeError(f"Kernel for '{qualified_name}' is not callable")

        self._specs_by_qualified[qualified_name] = spec
        self._kernels_by_name[spec.kernel_name] = kernel
        self._specs_by_namespace.setdefault(spec.namespace, OrderedDict())[spec.name] = spec

    def import_namespace(self, namespace: str) -> None:
        if namespace not in self._loaded_namespaces:
            self._load_namespace(namespace)

        if namespace not in self._import_order:
            self._import_order.append(namespace)

    def resolve(self, name: str) -> PrimitiveSpec:
        if "." in name:
            namespace, primitive_name = name.split(".", 1)
            if namespace and primitive_name and namespace in self._specs_by_namespace:
                qualified = f"{namespace}.{primitive_name}"
                if qualified not in self._specs_by_qualified:
                    raise KeyError(f"Unknown primitive: {qualified}")
                return self._specs_by_qualified[qualified]

        ordered = list(self._import_order)
        # Unimported namespaces still resolve, after imported ones, alphabetically.
        for namespace in sorted(self._specs_by_namespace.keys()):
            if namespace not in ordered:
                ordered.append(namespace)

        for namespace in ordered:
            specs = self._specs_by_namespace.get(namespace)
            if specs and name in specs:
                return specs[name]

        raise KeyError(f"Unknown primitive: {name}")

    def has(self, name: str) -> bool:
        try:
            self.resolve(name)
        except KeyError:
            return False
        return True

    def load_kernel(self, name: str) -> KernelFn:
        spec = self.resolve(name)
        return self._kernels_by_name[spec.kernel_name]

    def get_spec(self, name: str) -> PrimitiveSpec:
        return self.resolve(name)

    def namespace_options(self, namespace: str) -> dict[str, str]:
        if namespace not in self._loaded_namespaces:
            self._load_namespace(namespace)
        return dict(self._options_by_namespace.get(namespace, {}))

    def list_namespaces(self) -> list[str]:
        return sorted(self._specs_by_namespace.keys())

    def list_primitives(self, namespace_name: str | None = None) -> dict[str, str]:
        if namespace_name is not None:
            if namespace_name not in self._loaded_namespaces:
                self._load_namespace(namespace_name)

            selected_specs: OrderedDict[str, PrimitiveSpec] = self._specs_by_namespace.get(
                namespace_name,
                OrderedDict(),
            )
            return {
                name: spec.description or "Primitive"
                for name, spec in selected_specs.items()
            }

        output: dict[str, str] = {}
        for namespace in self.list_namespaces():
            for primitive_name, spec in self._specs_by_namespace[namespace].items():
                output[f"{namespace}.{primitive_name}"] = spec.description or "Primitive"
        return output
