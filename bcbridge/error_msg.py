"""
bcbridge Error Message module - script-level errors and run reports
"""

from typing import List, Tuple, Optional
from dataclasses import dataclass, field


# Type alias for stack trace: (identifier, position) pairs, innermost first
Stack = List[Tuple[str, str]]


class ScriptError(Exception):
    """Error raised into, and catchable by, running scripts.

    Every failure a script can observe is a ``ScriptError``: translated
    arithmetic failures coming from the ``bcmath`` bridge as well as host
    errors such as unknown identifiers. The optional stack trace records the
    chain of calls active when the error was raised.
    """

    def __init__(self, msg: str, stack_trace: Optional[Stack] = None):
        self.msg = msg
        self.stack_trace = list(stack_trace or [])
        super().__init__(self.format_message())

    def format_message(self) -> str:
        if not self.stack_trace:
            return self.msg

        trace_str = ""
        for identifier, position in self.stack_trace:
            trace_str += f"\n{identifier} at {position}"

        return f"{self.msg}{trace_str}"

    def push_frame(self, identifier: str, position: str) -> None:
        """Record one more (outer) frame while the error unwinds"""
        self.stack_trace.append((identifier, position))

    def __str__(self) -> str:
        return self.format_message()


@dataclass
class Report:
    """Report class for tracking print operations of one run"""

    _print_items: List[Tuple[str, str, str]] = field(default_factory=list)

    def print(self, name: str, type_: str, result: str) -> None:
        """Record a print operation"""
        self._print_items.append((name, type_, result))

    def get(self) -> List[Tuple[str, str, str]]:
        """Get all recorded operations"""
        return self._print_items.copy()
