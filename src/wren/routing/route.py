"""Route frozen dataclass."""

from dataclasses import dataclass

from wren.handler import Handler


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route: an exact route key and its terminal handler.

    Created by ``Router.add()``; replaced (never mutated) when the same
    key is registered again.
    """

    key: str
    handler: Handler
    name: str | None = None
