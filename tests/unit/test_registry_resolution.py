from __future__ import annotations

from types import SimpleNamespace

import pytest

from bcbridge.language import CONTENT_LANGUAGE_ENV, RenderingContext
from bcbridge.primitives import bcmath
from bcbridge.primitives.api import AritySpec, PrimitiveSpec
from bcbridge.primitives.bcmath import InterfaceRegistration, Operation, PRIMITIVE_SPECS
from bcbridge.primitives.registry import NAMESPACES, PrimitiveRegistry

NINE = ["add", "sub", "mul", "div", "mod", "pow", "powmod", "sqrt", "comp"]


def _extra_namespace(name="extra", primitive="add"):
    spec = PrimitiveSpec(
        name=primitive,
        namespace=name,
        kind="scalar",
        arity=AritySpec.fixed(0),
        kernel_name=f"{name}.{primitive}",
        description="Test primitive",
    )

    def register(context=None, scale_source=None):
        return InterfaceRegistration(
            name=name,
            specs={primitive: spec},
            functions={primitive: lambda: name},
        )

    return SimpleNamespace(register=register)


@pytest.mark.unit
def test_static_table_lists_bcmath_only():
    assert list(NAMESPACES) == ["bcmath"]
    assert list(PRIMITIVE_SPECS) == NINE
    assert {operation.value for operation in Operation} == set(PRIMITIVE_SPECS)


@pytest.mark.unit
def test_registry_exposes_nine_sequence_primitives():
    registry = PrimitiveRegistry()
    assert registry.list_namespaces() == ["bcmath"]
    assert list(registry.list_primitives("bcmath")) == NINE
    for name in NINE:
        spec = registry.resolve(f"bcmath.{name}")
        assert spec.kind == "sequence"
        assert spec.qualified_name == f"bcmath.{name}"


@pytest.mark.unit
def test_powmod_and_sqrt_arity():
    registry = PrimitiveRegistry()
    assert registry.get_spec("bcmath.powmod").arity.min_args == 3
    assert registry.get_spec("bcmath.sqrt").arity.min_args == 1
    assert registry.get_spec("bcmath.add").arity.max_args is None


@pytest.mark.unit
def test_kernels_are_bound_handlers():
    registry = PrimitiveRegistry(scale_source=lambda: 2)
    kernel = registry.load_kernel("bcmath.div")
    assert kernel.__name__ == "bcdiv"
    assert kernel("1", "4") == ["0.25"]
    assert kernel("1", "4", 0) == ["0"]


@pytest.mark.unit
def test_registration_performs_no_arithmetic():
    def source():
        raise AssertionError("scale read during registration")

    registry = PrimitiveRegistry(scale_source=source)
    assert registry.has("bcmath.add")


@pytest.mark.unit
def test_unknown_names():
    registry = PrimitiveRegistry()
    assert not registry.has("bcmath.log")
    with pytest.raises(KeyError, match="Unknown primitive: bcmath.log"):
        registry.resolve("bcmath.log")
    with pytest.raises(KeyError, match="Unknown primitive: nope"):
        registry.resolve("nope")
    with pytest.raises(ValueError, match="Unknown primitive namespace: nope"):
        registry.import_namespace("nope")
    with pytest.raises(ValueError, match="Unknown primitive namespace: nope"):
        registry.list_primitives("nope")


@pytest.mark.unit
def test_duplicate_registration_is_rejected():
    registry = PrimitiveRegistry()
    spec = registry.get_spec("bcmath.add")
    with pytest.raises(ValueError, match="already registered"):
        registry.register(spec, lambda *args: ["0"])


@pytest.mark.unit
def test_non_callable_kernel_is_rejected():
    registry = PrimitiveRegistry()
    spec = PrimitiveSpec(
        name="noop",
        namespace="bcmath",
        kind="scalar",
        arity=AritySpec.fixed(0),
        kernel_name="bcmath.noop",
    )
    with pytest.raises(TypeError):
        registry.register(spec, "not callable")


@pytest.mark.unit
def test_language_option_from_rendering_context(monkeypatch):
    monkeypatch.setenv(CONTENT_LANGUAGE_ENV, "fr")
    registry = PrimitiveRegistry(context=RenderingContext(target_language="de"))
    assert registry.namespace_options("bcmath") == {"lang": "de"}


@pytest.mark.unit
def test_language_option_falls_back_to_content_language(monkeypatch):
    assert PrimitiveRegistry().namespace_options("bcmath") == {"lang": "en"}
    monkeypatch.setenv(CONTENT_LANGUAGE_ENV, "fr")
    assert PrimitiveRegistry().namespace_options("bcmath") == {"lang": "fr"}


@pytest.mark.unit
def test_repeated_registration_is_equivalent():
    first = bcmath.register()
    second = bcmath.register()
    assert first == second
    assert list(first.functions) == list(second.functions) == NINE
    assert first.functions["add"]("1", "2", 0) == second.functions["add"]("1", "2", 0)


@pytest.mark.unit
def test_unqualified_resolution_follows_import_order():
    registry = PrimitiveRegistry(
        namespaces={"bcmath": bcmath, "extra": _extra_namespace()}
    )
    # Without imports, namespaces are searched alphabetically
    assert registry.resolve("add").qualified_name == "bcmath.add"

    registry.import_namespace("extra")
    assert registry.imported_namespaces == ("extra",)
    assert registry.resolve("add").qualified_name == "extra.add"
    assert registry.resolve("bcmath.add").qualified_name == "bcmath.add"


@pytest.mark.unit
def test_mismatched_namespace_name_is_rejected():
    with pytest.raises(ValueError, match="registered as 'other'"):
        PrimitiveRegistry(namespaces={"extra": _extra_namespace(name="other")})


@pytest.mark.unit
def test_list_primitives_qualifies_names():
    primitives = PrimitiveRegistry().list_primitives()
    assert sorted(primitives) == sorted(f"bcmath.{name}" for name in NINE)
    assert primitives["bcmath.comp"] == "Compare two decimals (-1, 0 or 1)"
