"""
Exceptions raised by the compatibility transformer.

These are fatal internal errors: they mean the trees were left in an
inconsistent state and the whole patch attempt for the shader program must be
treated as failed. Recoverable incompatibilities are logged, never raised.
"""

from typing import Any, Optional


class TransformerError(Exception):
    """Fatal error during a compatibility transformation pass.

    Examples:
        >>> raise TransformerError("The targeted out declaration member is missing!")
        TransformerError: The targeted out declaration member is missing!
    """

    def __init__(self, message: str, node: Optional[Any] = None):
        """Initialize the exception with a message and optional tree node.

        Args:
            message: The error message
            node: Optional node the error refers to
        """
        self.message = message
        self.node = node

        location_info = ""
        if node is not None:
            location_info = f" (at {type(node).__name__})"
            name = getattr(node, "name", None)
            if isinstance(name, str):
                location_info = f" (at {type(node).__name__} '{name}')"

        super().__init__(f"{message}{location_info}")


class IllegalRedefinitionError(TransformerError):
    """A name would be tracked twice while propagating const removal."""


class MissingNodeError(TransformerError):
    """A node that a successful match guarantees to exist could not be found."""
