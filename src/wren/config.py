"""Router configuration.

RouterConfig is a frozen dataclass and cannot change after creation.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(debug=True)
    """

    # Development mode: double writes raise, misuse errors propagate,
    # 500 bodies include the exception.
    debug: bool = False

    # Cache the composed chain per route key after the first dispatch
    memoize_chains: bool = True

    # Default bodies written by the error boundary
    not_found_detail: str = "Not Found"
    server_error_detail: str = "Internal Server Error"

    # Content type of freshly created responses
    default_content_type: str = "text/plain; charset=utf-8"
