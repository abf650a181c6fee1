from typing import Any, Dict, List, Tuple

from fenics.errors import FenicsError
from fenics.types import type_name


def expect_string(value: Any, pos: int) -> str:
    if not isinstance(value, str):
        raise FenicsError(f"Argument {pos} must be a string, got {type_name(value)}", 'TypeError')
    return value


class Bridge:
    """A host capability exposed to scripts as `name.method(args...)`.

    Subclasses list their callable methods in `methods`, mapping each method
    name to its parameter names; `call` checks the method and arity and then
    dispatches to the attribute of the same name with already evaluated
    arguments.
    """
    name: str = ''
    methods: Dict[str, Tuple[str, ...]] = {}

    def call(self, method: str, args: List[Any]) -> Any:
        params = self.methods.get(method)
        if params is None:
            supported = ', '.join(self.methods)
            raise FenicsError(f"Unknown {self.name} method '{method}'. Supported: {supported}", 'AttributeError')
        if len(args) != len(params):
            noun = 'argument' if len(params) == 1 else 'arguments'
            usage = f"{self.name}.{method}({', '.join(params)})"
            raise FenicsError(f"{usage} takes exactly {len(params)} {noun}", 'TypeError')
        return getattr(self, method)(*args)

    def __repr__(self) -> str:
        return f"<bridge:{self.name}>"
