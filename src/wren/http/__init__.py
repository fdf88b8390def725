"""Request, Response, and Headers: the values that travel through a chain."""

from wren.http.headers import Headers
from wren.http.request import Request
from wren.http.response import Response

__all__ = ["Headers", "Request", "Response"]
