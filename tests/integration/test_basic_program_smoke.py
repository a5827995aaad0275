from __future__ import annotations

import pytest

from bcbridge.interpreter import run_program
from bcbridge.language import RenderingContext


@pytest.mark.integration
def test_basic_program_smoke_execution():
    program = """
// compound interest, kept exact
import "bcmath"
scale 10
let *(a, b) = mul(a, b)
let principal = "1000"
let rate = bcmath.add("1", bcmath.div("5", "100"))
let grown = principal * pow(rate, "3")
print "grown" bcmath.add(grown, "0", 2)
print "check" comp(grown, "1157.625")
print "remainder" mod("1157", "10", 0)
print "safe" catch(div(grown, "0"), "undefined")
"""
    result = run_program(program, context=RenderingContext(target_language="en-GB"))

    assert result.commands == 10
    assert result.language == "en-GB"
    assert result.default_scale == 10
    assert result.prints == [
        ("grown", "string", "1157.62"),
        ("check", "number", "0"),
        ("remainder", "string", "7"),
        ("safe", "string", "undefined"),
    ]


@pytest.mark.integration
def test_large_operands_stay_exact():
    result = run_program(
        'print "big" bcmath.mul("99999999999999999999.5", "2", 1)\n'
        'print "root" bcmath.sqrt("152415787532388367501905199875019052100", 0)'
    )
    assert result.prints == [
        ("big", "string", "199999999999999999999.0"),
        ("root", "string", "12345678901234567890"),
    ]
