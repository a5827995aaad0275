# bcbridge Primitives Directory
"""
This package contains the primitive namespaces exposed to scripts.
Primitives are registered through `PrimitiveSpec` contracts and resolved
by `PrimitiveRegistry` with deterministic namespace rules.
"""
