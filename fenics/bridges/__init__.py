from typing import Dict

from .base import Bridge, expect_string
from .fs_bridge import FsBridge
from .http_bridge import HttpBridge, json_to_value


def default_bridges() -> Dict[str, Bridge]:
    """Build a fresh registry of the bridges every interpreter starts with."""
    return {
        'fs': FsBridge(),
        'http': HttpBridge(),
    }
