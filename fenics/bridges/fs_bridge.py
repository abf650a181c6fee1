import os

from fenics.errors import FenicsError
from .base import Bridge, expect_string


class FsBridge(Bridge):
    """Filesystem access: fs.read(path), fs.exists(path), fs.write(path, content)."""
    name = 'fs'
    methods = {
        'read': ('path',),
        'exists': ('path',),
        'write': ('path', 'content'),
    }

    def read(self, path) -> str:
        path = expect_string(path, 1)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise FenicsError(f"fs.read error: {e}", 'IOError')

    def exists(self, path) -> bool:
        path = expect_string(path, 1)
        return os.path.exists(path)

    def write(self, path, content) -> bool:
        path = expect_string(path, 1)
        content = expect_string(content, 2)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
            return True
        except OSError as e:
            raise FenicsError(f"fs.write error: {e}", 'IOError')
