"""
bcbridge Parser module - host script language using Lark
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Union
from pathlib import Path
from lark import Lark, Transformer, v_args, Tree
from lark.exceptions import UnexpectedInput

from bcbridge.error_msg import ScriptError

Position = str


@dataclass
class Expression:
    """Base class for expressions in the script language"""

    def to_syntax(self) -> str:
        """Convert the expression to syntax form"""
        raise NotImplementedError("Must be implemented by subclasses")


@dataclass
class ECall(Expression):
    """Function call expression"""

    position: Position
    identifier: str
    arguments: List[Expression]

    def __str__(self) -> str:
        if not self.arguments:
            return f"{self.identifier}"
        arg_str = [str(arg) for arg in self.arguments]
        return f"{self.identifier}({arg_str})"

    def to_syntax(self) -> str:
        if not self.arguments:
            return f"{self.identifier}"
        arg_str = ",".join([arg.to_syntax() for arg in self.arguments])
        return f"{self.identifier}({arg_str})"


@dataclass
class ENumber(Expression):
    """Numeric literal expression, kept exact"""

    value: Union[int, Decimal]

    def __str__(self) -> str:
        return f"{self.value}"

    def to_syntax(self) -> str:
        return f"{self.value}"


@dataclass
class EBool(Expression):
    """Boolean literal expression"""

    value: bool

    def __str__(self) -> str:
        return f"{self.value}".lower()

    def to_syntax(self) -> str:
        return f"{self.value}".lower()


@dataclass
class EString(Expression):
    """String literal expression"""

    value: str

    def __str__(self) -> str:
        return self.value

    def to_syntax(self) -> str:
        return f'"{self.value}"'


@dataclass
class ENull(Expression):
    """The null literal"""

    def __str__(self) -> str:
        return "null"

    def to_syntax(self) -> str:
        return "null"


@dataclass
class Command:
    """Base class for commands in the script language"""

    def to_syntax(self) -> str:
        """Convert the command to syntax form"""
        raise NotImplementedError("Must be implemented by subclasses")


@dataclass
class Declaration(Command):
    """Variable or function declaration"""

    identifier: str
    arguments: List[str]
    expression: Expression

    def to_syntax(self) -> str:
        if not self.arguments:
            return f"let {self.identifier}={self.expression.to_syntax()}"
        args_str = ",".join(self.arguments)
        return f"let {self.identifier}({args_str})={self.expression.to_syntax()}"


@dataclass
class Print(Command):
    """Command to print an expression"""

    position: Position
    identifier: str
    expression: Expression

    def to_syntax(self) -> str:
        return f'print "{self.identifier}" {self.expression.to_syntax()}'


@dataclass
class Import(Command):
    """Command to import a primitive namespace"""

    path: str

    def to_syntax(self) -> str:
        return f'import "{self.path}"'


@dataclass
class SetScale(Command):
    """Command to change the session's ambient default scale"""

    value: int

    def to_syntax(self) -> str:
        return f"scale {self.value}"


@dataclass
class Program:
    """A program consisting of a list of commands"""

    commands: List[Command]

    def to_syntax(self) -> str:
        return "\n".join([cmd.to_syntax() for cmd in self.commands])

    def __str__(self) -> str:
        return self.to_syntax()


# Lark grammar for the script language
grammar = r"""
    program: command*

    command: let_cmd | print_cmd | import_cmd | scale_cmd

    let_cmd: "let" variable_name formal_args? "=" expression
    print_cmd: "print" string expression
    import_cmd: "import" string
    scale_cmd: "scale" INT

    formal_args: "(" identifier ("," identifier)* ")"
    actual_args: "(" expression ("," expression)* ")"

    expression: simple_expr | call_expr | op_expr | paren_expr

    simple_expr: number | boolean | null | string
    call_expr: function_name actual_args?
    op_expr: expression OPERATOR expression
    paren_expr: "(" expression ")"

    function_name: identifier | OPERATOR
    variable_name: identifier | OPERATOR
    identifier: qualified_identifier | simple_identifier
    qualified_identifier: simple_identifier "." simple_identifier
    simple_identifier: /[a-zA-Z_][a-zA-Z0-9_]*/

    // "." stays out of operators so qualified identifiers parse
    OPERATOR: /(?!\/{2})[#;:'|!$%&\/^=*\-+<>?@~\\]+/
    number: SIGNED_NUMBER
    boolean: "true" -> true
           | "false" -> false
    null: "null"
    string: ESCAPED_STRING

    COMMENT: "//" /[^\n]*/

    %import common.ESCAPED_STRING
    %import common.SIGNED_NUMBER
    %import common.INT
    %import common.WS
    %ignore WS
    %ignore COMMENT
"""


def _position(meta) -> Position:
    if getattr(meta, "empty", True):
        return "pos"
    return f"line {meta.line}, column {meta.column}"


class ScriptTransformer(Transformer):
    """Transform the parse tree into the AST"""

    @v_args(inline=True)
    def program(self, *commands):
        processed_commands = []
        for cmd in commands:
            if isinstance(cmd, Tree) and cmd.data == "command" and cmd.children:
                processed_commands.append(cmd.children[0])
            else:
                processed_commands.append(cmd)
        return Program(processed_commands)

    @v_args(inline=True)
    def command(self, cmd):
        return cmd

    @v_args(inline=True)
    def let_cmd(self, variable_name, *args):
        if len(args) == 1:  # No formal args, just the expression
            return Declaration(variable_name, [], args[0])
        return Declaration(variable_name, args[0], args[1])

    @v_args(inline=True)
    def variable_name(self, name):
        return str(name)

    @v_args(meta=True)
    def print_cmd(self, meta, children):
        identifier, expression = children
        return Print(_position(meta), identifier.value, expression)

    @v_args(inline=True)
    def import_cmd(self, path):
        return Import(path.value)

    @v_args(inline=True)
    def scale_cmd(self, token):
        return SetScale(int(token))

    @v_args(inline=True)
    def formal_args(self, *args):
        return list(args)

    @v_args(inline=True)
    def actual_args(self, *args):
        return list(args)

    @v_args(meta=True)
    def call_expr(self, meta, children):
        function_name = children[0]
        args = children[1] if len(children) > 1 else []
        return ECall(_position(meta), function_name, args)

    @v_args(inline=True)
    def function_name(self, name):
        return str(name)

    @v_args(meta=True)
    def op_expr(self, meta, children):
        left, op, right = children
        return ECall(_position(meta), str(op), [left, right])

    @v_args(inline=True)
    def paren_expr(self, expr):
        return expr

    @v_args(inline=True)
    def simple_expr(self, value):
        return value

    @v_args(inline=True)
    def expression(self, expr):
        return expr

    @v_args(inline=True)
    def identifier(self, identifier):
        return identifier

    @v_args(inline=True)
    def qualified_identifier(self, namespace, primitive):
        return f"{namespace}.{primitive}"

    @v_args(inline=True)
    def simple_identifier(self, token):
        return str(token)

    @v_args(inline=True)
    def number(self, token):
        text = str(token)
        if any(marker in text for marker in ".eE"):
            return ENumber(Decimal(text))
        return ENumber(int(text))

    @v_args(inline=True)
    def true(self):
        return EBool(True)

    @v_args(inline=True)
    def false(self):
        return EBool(False)

    @v_args(inline=True)
    def null(self):
        return ENull()

    @v_args(inline=True)
    def string(self, token):
        # Remove the quotes from the string
        return EString(token[1:-1])


# Create the parser; the transformer runs afterwards so call positions survive
parser = Lark(grammar, start="program", parser="lalr", propagate_positions=True)


def parse_program_content(content: str) -> Program:
    """
    Parse a program from content string

    Args:
        content: String containing the program text

    Returns:
        A Program object representing the parsed program

    Raises:
        ScriptError: if the text is not a valid program
    """
    try:
        parse_tree = parser.parse(content)
    except UnexpectedInput as exc:
        raise ScriptError(
            f"Syntax error at line {exc.line}, column {exc.column}"
        ) from exc

    result = ScriptTransformer().transform(parse_tree)

    # Ensure we got a Program object
    if not isinstance(result, Program):
        raise ValueError(f"Expected Program object, got {type(result).__name__}")

    return result


def parse_program(filename: Union[str, Path]) -> Program:
    """
    Parse a program from a file

    Args:
        filename: Path to the file containing the program

    Returns:
        A Program object representing the parsed program
    """
    with open(filename, "r") as f:
        program_text = f.read()
    return parse_program_content(program_text)
