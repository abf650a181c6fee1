from typing import Any


class FenicsError(Exception):
    """Exception type used to propagate Fenics runtime errors.

    Scripts only ever see `message`; `kind` is a category label kept for
    debugging output.
    """
    def __init__(self, message: str, kind: str = 'RuntimeError'):
        super().__init__(message)
        self.message = message
        self.kind = kind


class FenicsSyntaxError(FenicsError):
    """Raised when source text cannot be parsed."""
    def __init__(self, message: str):
        super().__init__(message, 'SyntaxError')


class ReturnSignal:
    """Early-exit result produced by a return statement.

    Statement execution returns either None or a ReturnSignal; it is a value,
    not an exception, so try/catch never intercepts it.
    """
    __slots__ = ('value',)

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"
