"""
Constants used when printing GLSL documents.

Operator precedence follows the GLSL specification; higher binds tighter.
"""

OPERATOR_PRECEDENCE: dict[str, int] = {
    # Assignment has lowest precedence
    "=": 1,
    "+=": 1,
    "-=": 1,
    "*=": 1,
    "/=": 1,
    "%=": 1,
    # Logical operators, each on its own level
    "||": 2,  # Logical OR
    "^^": 3,  # Logical XOR
    "&&": 4,  # Logical AND
    # Equality operators
    "==": 5,  # Equal
    "!=": 5,  # Not equal
    # Relational operators
    "<": 6,  # Less than
    ">": 6,  # Greater than
    "<=": 6,  # Less than or equal
    ">=": 6,  # Greater than or equal
    # Additive operators
    "+": 7,  # Addition
    "-": 7,  # Subtraction
    # Multiplicative operators
    "*": 8,  # Multiplication
    "/": 8,  # Division
    "%": 8,  # Modulo
    # Unary operators
    "unary": 9,
    # Function calls and member access
    "call": 10,
    "member": 11,
}

INDENT = "    "
