from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from fenics.errors import FenicsError


class Environment:
    """Scope store for one interpreter instance.

    Holds the global bindings, a stack of local frames (pushed by function
    calls, for loops and catch blocks) and a flat namespace of ephemeral
    variables that lives outside the frame stack.
    """
    def __init__(self):
        self.globals: Dict[str, Any] = {}
        self.frames: List[Dict[str, Any]] = []
        self.ephemerals: Dict[str, Any] = {}

    def get(self, name: str) -> Any:
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        if name in self.globals:
            return self.globals[name]
        raise FenicsError(f"Variable '{name}' not found", 'NameError')

    def set_existing(self, name: str, value: Any) -> Any:
        # Plain assignment never creates a binding
        for frame in reversed(self.frames):
            if name in frame:
                frame[name] = value
                return value
        if name in self.globals:
            self.globals[name] = value
            return value
        raise FenicsError(f"Variable '{name}' not found", 'NameError')

    def declare(self, name: str, value: Any, is_global: bool = False):
        if is_global or not self.frames:
            self.globals[name] = value
        else:
            self.frames[-1][name] = value

    def define_global(self, name: str, value: Any):
        self.globals[name] = value

    def bind_local(self, name: str, value: Any):
        self.frames[-1][name] = value

    def push_frame(self):
        self.frames.append({})

    def pop_frame(self):
        self.frames.pop()

    @contextmanager
    def frame(self) -> Iterator[Dict[str, Any]]:
        self.push_frame()
        try:
            yield self.frames[-1]
        finally:
            self.pop_frame()

    def get_ephemeral(self, name: str) -> Any:
        if name in self.ephemerals:
            return self.ephemerals[name]
        raise FenicsError(f"Ephemeral variable '{name}' not found", 'NameError')

    def set_ephemeral(self, name: str, value: Any) -> Any:
        self.ephemerals[name] = value
        return value
