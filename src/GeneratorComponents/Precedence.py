"""Operator precedence classes for NQC expressions (C ordering).

Lower values bind tighter. The emitters compare these values but never insert
parentheses on their own; grouping is always an explicit block.
"""

from enum import IntEnum


class Order(IntEnum):
    ATOMIC = 0           # literals, identifiers, ( ... )
    UNARY_POSTFIX = 1    # expr++ expr-- () []
    UNARY_PREFIX = 2     # ++expr --expr +expr -expr ~ !
    MULTIPLICATIVE = 3   # * / %
    ADDITIVE = 4         # + -
    SHIFT = 5            # << >>
    RELATIONAL = 6       # < <= > >=
    EQUALITY = 7         # == !=
    BITWISE_AND = 8      # &
    BITWISE_XOR = 9      # ^
    BITWISE_OR = 10      # |
    LOGICAL_AND = 11     # &&
    LOGICAL_OR = 12      # ||
    CONDITIONAL = 13     # ?:
    ASSIGNMENT = 14      # = += -= *= /= %= <<= >>= &= ^= |=
    NONE = 99            # anything goes


def needs_grouping(inner: Order, required: Order) -> bool:
    """Return True when an operand of precedence `inner` would bind looser
    than the context `required` asks for.

    The answer is only used for diagnostics; output text is never changed.
    """
    return inner > required
