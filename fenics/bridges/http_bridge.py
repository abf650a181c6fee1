from typing import Any

import requests

from fenics.errors import FenicsError
from fenics.types import NULL, INT_MAX, INT_MIN, ArrayVal, ObjectVal
from .base import Bridge, expect_string


def json_to_value(data: Any) -> Any:
    """Convert decoded JSON into Fenics values.

    Integral numbers that fit in 64 bits stay integers, every other number
    becomes a float.
    """
    if data is None:
        return NULL
    if isinstance(data, bool):
        return data
    if isinstance(data, int):
        if INT_MIN <= data <= INT_MAX:
            return data
        return float(data)
    if isinstance(data, (float, str)):
        return data
    if isinstance(data, list):
        return ArrayVal(tuple(json_to_value(item) for item in data))
    if isinstance(data, dict):
        return ObjectVal({str(k): json_to_value(v) for k, v in data.items()})
    raise FenicsError(f"Unsupported JSON value {data!r}", 'ValueError')


class HttpBridge(Bridge):
    """Blocking HTTP client: http.get(url), http.get_json(url), http.post(url, body).

    Response status codes are not checked; the body is returned as-is.
    """
    name = 'http'
    methods = {
        'get': ('url',),
        'get_json': ('url',),
        'post': ('url', 'body'),
    }

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def get(self, url) -> str:
        url = expect_string(url, 1)
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FenicsError(f"http.get error: {e}", 'IOError')
        return response.text

    def get_json(self, url) -> Any:
        url = expect_string(url, 1)
        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FenicsError(f"http.get_json error: {e}", 'IOError')
        try:
            data = response.json()
        except ValueError as e:
            raise FenicsError(f"http.get_json parse error: {e}", 'ValueError')
        return json_to_value(data)

    def post(self, url, body) -> str:
        url = expect_string(url, 1)
        body = expect_string(body, 2)
        try:
            response = requests.post(url, data=body.encode('utf-8'), timeout=self.timeout)
        except requests.RequestException as e:
            raise FenicsError(f"http.post error: {e}", 'IOError')
        return response.text
