"""Strict interpreter for the host script language.

The interpreter owns the session's ambient default scale (changed by the
``scale N`` command) and hands it to the primitive registry as a scale
source, so registered handlers read it at call time without ever writing it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
import logging

from bcbridge.bignum import check_scale
from bcbridge.error_msg import Report, ScriptError, Stack
from bcbridge.language import RenderingContext
from bcbridge.parser import (
    Command,
    Declaration,
    EBool,
    ECall,
    ENull,
    ENumber,
    EString,
    Expression,
    Import,
    Print,
    Program,
    SetScale,
    parse_program_content,
)
from bcbridge.primitives.bcmath import NAMESPACE
from bcbridge.primitives.registry import PrimitiveRegistry
from bcbridge.scale import current_default_scale

logger = logging.getLogger(__name__)

CATCH = "catch"
_MISSING = object()


@dataclass(frozen=True)
class UserFunction:
    """A ``let`` declaration with formal arguments, closed over its scope."""

    identifier: str
    arguments: tuple[str, ...]
    expression: Expression
    scope: "Scope" = field(repr=False)


class Scope:
    """Lexical scope mapping identifiers to values or user functions."""

    def __init__(self, parent: "Scope | None" = None) -> None:
        self.parent = parent
        self._bindings: dict[str, Any] = {}

    def define(self, identifier: str, value: Any) -> None:
        self._bindings[identifier] = value

    def lookup(self, identifier: str) -> Any:
        scope: Scope | None = self
        while scope is not None:
            if identifier in scope._bindings:
                return scope._bindings[identifier]
            scope = scope.parent
        return _MISSING


@dataclass(frozen=True)
class RunResult:
    """Outcome of running one program."""

    prints: list[tuple[str, str, str]]
    commands: int
    default_scale: int
    language: str


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float, Decimal)):
        return "number"
    return "string"


def render(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


class Interpreter:
    """Runs programs against a primitive registry, one command at a time."""

    def __init__(
        self,
        default_scale: int | None = None,
        context: RenderingContext | None = None,
    ) -> None:
        self.default_scale = None if default_scale is None else check_scale(default_scale)
        # Handlers must read this session's scale, so the registry is always ours
        self.registry = PrimitiveRegistry(
            context=context,
            scale_source=self.current_scale,
        )
        self.globals = Scope()

    def current_scale(self) -> int:
        """Ambient default scale seen by handlers at call time."""
        if self.default_scale is None:
            return current_default_scale()
        return self.default_scale

    @property
    def language(self) -> str:
        return self.registry.namespace_options(NAMESPACE).get("lang", "")

    def run(self, program: Program | str) -> RunResult:
        if isinstance(program, str):
            program = parse_program_content(program)

        report = Report()
        for command in program.commands:
            self.execute_command(command, report)

        return RunResult(
            prints=report.get(),
            commands=len(program.commands),
            default_scale=self.current_scale(),
            language=self.language,
        )

    def execute_command(self, command: Command, report: Report) -> None:
        if isinstance(command, Declaration):
            if command.arguments:
                self.globals.define(
                    command.identifier,
                    UserFunction(
                        command.identifier,
                        tuple(command.arguments),
                        command.expression,
                        self.globals,
                    ),
                )
            else:
                self.globals.define(
                    command.identifier, self.evaluate(command.expression, self.globals)
                )
        elif isinstance(command, Print):
            value = self.evaluate(command.expression, self.globals)
            report.print(command.identifier, type_name(value), render(value))
            logger.debug("%s=%s", command.identifier, render(value))
        elif isinstance(command, Import):
            try:
                self.registry.import_namespace(command.path)
            except ValueError as exc:
                raise ScriptError(str(exc), [("import", command.path)]) from exc
        elif isinstance(command, SetScale):
            self.default_scale = check_scale(command.value)
            logger.debug("Session default scale set to %d", command.value)
        else:
            raise ScriptError(f"Unsupported command: {type(command).__name__}")

    def evaluate(self, expression: Expression, scope: Scope) -> Any:
        if isinstance(expression, ENumber):
            return expression.value
        if isinstance(expression, EString):
            return expression.value
        if isinstance(expression, EBool):
            return expression.value
        if isinstance(expression, ENull):
            return None
        if isinstance(expression, ECall):
            return self._evaluate_call(expression, scope)
        raise ScriptError(f"Unsupported expression: {type(expression).__name__}")

    def _evaluate_call(self, call: ECall, scope: Scope) -> Any:
        frame: Stack = [(call.identifier, call.position)]
        binding = scope.lookup(call.identifier)

        if binding is _MISSING and call.identifier == CATCH:
            return self._evaluate_catch(call, scope)

        if isinstance(binding, UserFunction):
            return self._apply_function(binding, call, scope)

        if binding is not _MISSING:
            if call.arguments:
                raise ScriptError(f"'{call.identifier}' is not a function", frame)
            return binding

        if not self.registry.has(call.identifier):
            raise ScriptError(f"Unknown identifier: {call.identifier}", frame)

        spec = self.registry.resolve(call.identifier)
        try:
            spec.arity.validate(len(call.arguments))
        except ValueError as exc:
            raise ScriptError(f"{spec.qualified_name}: {exc}", frame) from exc

        arguments = [self.evaluate(argument, scope) for argument in call.arguments]
        kernel = self.registry.load_kernel(spec.qualified_name)
        try:
            result = kernel(*arguments)
        except ScriptError as exc:
            exc.push_frame(call.identifier, call.position)
            raise

        if spec.kind == "sequence":
            # Expression context keeps the first returned value only
            return result[0] if result else None
        return result

    def _apply_function(self, function: UserFunction, call: ECall, scope: Scope) -> Any:
        if len(call.arguments) != len(function.arguments):
            raise ScriptError(
                f"'{function.identifier}' expects {len(function.arguments)} arguments, "
                f"got {len(call.arguments)}",
                [(call.identifier, call.position)],
            )

        local = Scope(function.scope)
        for name, argument in zip(function.arguments, call.arguments):
            local.define(name, self.evaluate(argument, scope))

        try:
            return self.evaluate(function.expression, local)
        except ScriptError as exc:
            exc.push_frame(call.identifier, call.position)
            raise

    def _evaluate_catch(self, call: ECall, scope: Scope) -> Any:
        if len(call.arguments) != 2:
            raise ScriptError(
                f"{CATCH} expects 2 arguments, got {len(call.arguments)}",
                [(call.identifier, call.position)],
            )
        attempt, fallback = call.arguments
        try:
            return self.evaluate(attempt, scope)
        except ScriptError as exc:
            logger.debug("Caught script error: %s", exc.msg)
            return self.evaluate(fallback, scope)


def run_program(
    program: Program | str,
    default_scale: int | None = None,
    context: RenderingContext | None = None,
) -> RunResult:
    """Run a program in a fresh interpreter session."""
    return Interpreter(default_scale=default_scale, context=context).run(program)
