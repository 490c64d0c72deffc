"""
Append-only builder used by the interpreter to assemble a DrawRoute.
"""

import logging
from typing import Dict, List, Optional

from drawgen.models.draw_route import DrawRoute, DrawStep, Gradient, Rect

logger = logging.getLogger(__name__)


class DrawRouteBuilder:
    """
    Collects steps for one route. Once build() is called the builder is
    sealed and any further mutation raises RuntimeError.
    """

    def __init__(self, bounding_rect: Rect, gradients: Optional[Dict[str, Gradient]] = None):
        self.bounding_rect = bounding_rect
        self._gradients: Dict[str, Gradient] = dict(gradients or {})
        self._subroutes: Dict[str, int] = {}
        self._steps: List[DrawStep] = []
        self._built = False

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError("DrawRouteBuilder already built; route is immutable")

    def append(self, step: DrawStep) -> int:
        """Append a step; returns its 0-based index in the route."""
        self._check_open()
        self._steps.append(step)
        index = len(self._steps) - 1
        logger.debug(f"{index}: {step!r}")
        return index

    def add_subroute(self, name: str, arena_index: int) -> None:
        self._check_open()
        self._subroutes[name] = arena_index

    def has_subroute(self, name: str) -> bool:
        return name in self._subroutes

    def build(self) -> DrawRoute:
        self._check_open()
        self._built = True
        return DrawRoute(
            bounding_rect=self.bounding_rect,
            steps=tuple(self._steps),
            gradients=self._gradients,
            subroutes=self._subroutes,
        )
