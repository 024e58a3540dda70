"""Checked unsigned 256-bit arithmetic.

Every operation raises ArithmeticFault instead of wrapping:
- add: result above MAX_UINT256
- sub: result below zero
- mul: result above MAX_UINT256
- div: zero divisor, or a quotient that does not satisfy a == b * q + a % b
"""

from .exceptions import ArithmeticFault
from .types import ArithmeticOperation

MAX_UINT256 = 2**256 - 1


def _check_operands(operation: ArithmeticOperation, a: int, b: int) -> None:
    for operand in (a, b):
        if isinstance(operand, bool) or not isinstance(operand, int):
            raise ArithmeticFault(operation, a, b, "operands must be integers")
        if operand < 0 or operand > MAX_UINT256:
            raise ArithmeticFault(operation, a, b, "operand out of uint256 range")


def add(a: int, b: int) -> int:
    _check_operands(ArithmeticOperation.ADD, a, b)
    c = a + b
    if c > MAX_UINT256:
        raise ArithmeticFault(ArithmeticOperation.ADD, a, b, "overflow")
    return c


def sub(a: int, b: int) -> int:
    _check_operands(ArithmeticOperation.SUB, a, b)
    if b > a:
        raise ArithmeticFault(ArithmeticOperation.SUB, a, b, "underflow")
    return a - b


def mul(a: int, b: int) -> int:
    _check_operands(ArithmeticOperation.MUL, a, b)
    c = a * b
    if c > MAX_UINT256:
        raise ArithmeticFault(ArithmeticOperation.MUL, a, b, "overflow")
    return c


def div(a: int, b: int) -> int:
    _check_operands(ArithmeticOperation.DIV, a, b)
    if b == 0:
        raise ArithmeticFault(ArithmeticOperation.DIV, a, b, "division by zero")
    c = a // b
    if a != b * c + a % b:
        raise ArithmeticFault(ArithmeticOperation.DIV, a, b, "inconsistent quotient")
    return c
