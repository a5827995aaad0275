"""
This module defines all bcbridge features using a unified registry system.
This module serves as the single source of truth for all features.
"""

from typing import (
    Dict,
    Any,
    Callable,
    List,
    Optional,
    TypeVar,
    Generic,
)
from dataclasses import dataclass
import logging

from bcbridge.error_msg import ScriptError
from bcbridge.language import RenderingContext
from bcbridge.parser import parse_program, parse_program_content

logger = logging.getLogger("bcbridge.features")

T = TypeVar("T")


class OperationResult(Generic[T]):
    """Wrapper for operation results with success/error handling"""

    def __init__(
        self, success: bool, data: Optional[T] = None, error: Optional[str] = None
    ):
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "OperationResult[T]":
        return cls(success=False, error=error)


@dataclass
class Feature:
    """Base class for all bcbridge features"""

    name: str
    description: str
    handler: Callable
    cli_options: Optional[Dict[str, Any]] = None
    api_endpoint: Optional[Dict[str, Any]] = None


class FeatureRegistry:
    """Registry for all bcbridge features"""

    _features: Dict[str, Feature] = {}

    @classmethod
    def register(cls, feature: Feature) -> Feature:
        """Register a new feature"""
        cls._features[feature.name] = feature
        return feature

    @classmethod
    def get_feature(cls, name: str) -> Optional[Feature]:
        """Get a feature by name"""
        return cls._features.get(name)

    @classmethod
    def get_all_features(cls) -> Dict[str, Feature]:
        """Get all registered features"""
        return cls._features.copy()


def _context(language: Optional[str]) -> Optional[RenderingContext]:
    return RenderingContext(target_language=language) if language else None


# ----------------- Feature Handlers -----------------


def handle_version(**kwargs) -> OperationResult[Dict[str, str]]:
    """Handle version request"""
    from bcbridge.version import get_version

    return OperationResult[Dict[str, str]](
        success=True, data={"version": get_version()}
    )


def handle_run(
    program: Optional[str] = None,
    filename: Optional[str] = None,
    default_scale: Optional[int] = None,
    language: Optional[str] = None,
    save_syntax: Optional[str] = None,
    execute: bool = True,
    **kwargs,
) -> OperationResult[Dict[str, Any]]:
    """Handle the unified run command"""
    from bcbridge.interpreter import Interpreter

    try:
        if program:
            syntax = parse_program_content(program)
        elif filename:
            syntax = parse_program(filename)
        else:
            return OperationResult[Dict[str, Any]](
                success=False,
                error="Either program content or filename must be provided",
            )
        logger.debug("Program parsed (%d commands)", len(syntax.commands))

        result: Dict[str, Any] = {
            "commands": len(syntax.commands),
            "syntax": str(syntax),
        }

        if execute:
            interpreter = Interpreter(
                default_scale=default_scale, context=_context(language)
            )
            outcome = interpreter.run(syntax)
            result["prints"] = [
                {"name": name, "type": type_, "value": value}
                for name, type_, value in outcome.prints
            ]
            result["default_scale"] = outcome.default_scale
            result["language"] = outcome.language

        if save_syntax:
            if filename:  # CLI mode - save to file
                with open(save_syntax, "w") as f:
                    f.write(str(syntax))
                result["messages"] = [f"Syntax saved to {save_syntax}"]
            else:  # API mode - include in response with specified key
                result["saved_files"] = {save_syntax: str(syntax)}

        return OperationResult[Dict[str, Any]](success=True, data=result)

    except ScriptError as e:
        return OperationResult[Dict[str, Any]](success=False, error=str(e))
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        return OperationResult[Dict[str, Any]](
            success=False, error=f"Unexpected error: {str(e)}"
        )


def handle_list_primitives(
    namespace: Optional[str] = None,
    **kwargs
) -> OperationResult[Dict[str, Any]]:
    """Handle listing available primitives"""
    try:
        from bcbridge.primitives.registry import PrimitiveRegistry

        registry = PrimitiveRegistry()
        primitives = registry.list_primitives(namespace)

        # Also get list of available namespaces
        namespaces = registry.list_namespaces()

        result = {
            "primitives": primitives,
            "namespaces": namespaces,
            "namespace_filter": namespace
        }

        return OperationResult[Dict[str, Any]](
            success=True,
            data=result
        )

    except Exception as e:
        return OperationResult[Dict[str, Any]](
            success=False,
            error=f"Failed to list primitives: {str(e)}"
        )


def handle_call(
    operation: str,
    arguments: Optional[List[Any]] = None,
    scale: Optional[int] = None,
    default_scale: Optional[int] = None,
    language: Optional[str] = None,
    **kwargs,
) -> OperationResult[Dict[str, Any]]:
    """Call one bcmath operation directly, outside of a script"""
    from bcbridge.primitives.bcmath import NAMESPACE
    from bcbridge.primitives.registry import PrimitiveRegistry
    from bcbridge.scale import current_default_scale

    if default_scale is None:
        scale_source = current_default_scale
    else:
        scale_source = lambda: default_scale  # noqa: E731

    registry = PrimitiveRegistry(context=_context(language), scale_source=scale_source)
    qualified = f"{NAMESPACE}.{operation}"
    if not registry.has(qualified):
        return OperationResult[Dict[str, Any]](
            success=False, error=f"Unknown operation: {operation}"
        )

    args = list(arguments or [])
    if scale is not None:
        operand_count = registry.get_spec(qualified).arity.min_args
        if len(args) > operand_count:
            return OperationResult[Dict[str, Any]](
                success=False,
                error=(
                    f"{NAMESPACE}:{operation}() takes {operand_count} operands, "
                    f"got {len(args)} with an explicit scale"
                ),
            )
        # Pad missing operands so the scale never lands in an operand slot
        args.extend([None] * (operand_count - len(args)))
        args.append(scale)
    try:
        values = registry.load_kernel(qualified)(*args)
    except ScriptError as e:
        return OperationResult[Dict[str, Any]](success=False, error=str(e))

    return OperationResult[Dict[str, Any]](
        success=True,
        data={
            "operation": operation,
            "result": values,
            "language": registry.namespace_options(NAMESPACE).get("lang"),
        },
    )


# Register all features
version_feature = FeatureRegistry.register(
    Feature(
        name="version",
        description="Get the bcbridge version",
        handler=handle_version,
        api_endpoint={
            "path": "/version",
            "methods": ["GET"],
            "response_model": Dict[str, str],
        },
    )
)

run_feature = FeatureRegistry.register(
    Feature(
        name="run",
        description="Run a script against the registered primitives",
        handler=handle_run,
        cli_options={
            "filename": {
                "type": str,
                "required": True,
                "help": "Script file",
            },
            "default_scale": {
                "type": int,
                "required": False,
                "help": "Ambient default scale for calls that omit one",
            },
            "language": {
                "type": str,
                "required": False,
                "help": "Target language code passed to registered interfaces",
            },
            "save_syntax": {
                "type": str,
                "required": False,
                "help": "Save the AST in text format",
            },
        },
        api_endpoint={
            "path": "/run",
            "methods": ["POST"],
            "request_model": {
                "program": (str, "The script content"),
                "default_scale": (Optional[int], "Ambient default scale"),
                "language": (Optional[str], "Target language code"),
                "save_syntax": (Optional[str], "Return the syntax tree under this key"),
                "execute": (Optional[bool], "Run the script (not just parse it)"),
            },
            "response_model": Dict[str, Any],
        },
    )
)

list_primitives_feature = FeatureRegistry.register(
    Feature(
        name="list_primitives",
        description="List available primitives",
        handler=handle_list_primitives,
        api_endpoint={
            "path": "/list-primitives",
            "methods": ["GET"],
            "request_model": {
                "namespace": (Optional[str], "Namespace to filter primitives"),
            },
            "response_model": Dict[str, Any],
        },
    )
)

call_feature = FeatureRegistry.register(
    Feature(
        name="call",
        description="Call one bcmath operation",
        handler=handle_call,
        api_endpoint={
            "path": "/bcmath/{operation}",
            "methods": ["POST"],
            "request_model": {
                "arguments": (List[Any], "Operands, in order"),
                "scale": (Optional[int], "Explicit scale for this call"),
                "default_scale": (Optional[int], "Ambient default scale"),
                "language": (Optional[str], "Target language code"),
            },
            "response_model": Dict[str, Any],
        },
    )
)
