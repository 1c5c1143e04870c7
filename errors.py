"""
Exception types raised by the h-language interpreter.
"""


class InterpreterError(RuntimeError):
    """Base class for failures that abort a run before it starts."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(message)

    def __str__(self):
        return self.original_message


class RecursionDepthExceeded(InterpreterError):
    """Expansion went deeper than the configured limit; usually a missing base case."""

    def __init__(self, function: str, depth: int, max_depth: int):
        self.function = function
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(f"Maximum recursion depth ({max_depth}) exceeded while calling '{function}'.")
