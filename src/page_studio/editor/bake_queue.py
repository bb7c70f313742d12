"""
Module: editor.bake_queue

Purpose:
    Sequences mosaic bakes on the live surface. Requests are keyed by
    object id so a newer request for the same region replaces a pending
    one, and nothing runs until the surface reports its background as
    ready. Requests that outlive their page or object are dropped.

Key Classes:
    - BakeQueue: Pending bake requests for one surface
    - BakeRequest: One scheduled bake

Dependencies:
    - editor.mosaic: bake()
    - editor.surface: Readiness and generation

Used By:
    - editor.session: Schedules bakes after adds, edits and page loads
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List

from page_studio.core.models.objects import MosaicRegion

from .mosaic import bake
from .surface import RenderSurface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BakeRequest:
    """
    One scheduled bake.

    Attributes:
        object_id: Id of the MosaicRegion to bake
        generation: Surface generation when the request was made
        sequence: Scheduling order (later requests win)
    """

    object_id: str
    generation: int
    sequence: int


class BakeQueue:
    """
    Ordered, superseding bake requests for a single surface.

    Example:
        >>> queue = BakeQueue(surface)
        >>> queue.schedule(region)
        >>> queue.drain()
        1
    """

    def __init__(self, surface: RenderSurface) -> None:
        self._surface = surface
        self._pending: Dict[str, BakeRequest] = {}
        self._sequence = 0

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def pending_ids(self) -> List[str]:
        """Object ids awaiting a bake, in scheduling order."""
        ordered = sorted(self._pending.values(), key=lambda r: r.sequence)
        return [request.object_id for request in ordered]

    def schedule(self, region: MosaicRegion) -> BakeRequest:
        """
        Request a bake of region.

        Replaces any pending request for the same object.
        """
        self._sequence += 1
        request = BakeRequest(region.id, self._surface.generation, self._sequence)
        if region.id in self._pending:
            logger.debug(f"Superseding pending bake of {region.id}")
            # Re-insert so dict order follows the newest request
            del self._pending[region.id]
        self._pending[region.id] = request
        return request

    def schedule_all(self) -> int:
        """Schedule every mosaic region on the surface. Returns the count."""
        regions = [obj for obj in self._surface.scene if isinstance(obj, MosaicRegion)]
        for region in regions:
            self.schedule(region)
        return len(regions)

    def discard(self, object_id: str) -> None:
        """Drop a pending request, if any."""
        self._pending.pop(object_id, None)

    def clear(self) -> None:
        """Drop every pending request."""
        self._pending.clear()

    def drain(self) -> int:
        """
        Run pending bakes in scheduling order.

        Does nothing until the surface background is ready. Requests made
        against an earlier surface generation, or whose object has left
        the scene, are discarded.

        Returns:
            Number of regions baked
        """
        if not self._surface.background_ready:
            logger.debug(f"Deferring {len(self._pending)} bake(s): background not ready")
            return 0

        requests = sorted(self._pending.values(), key=lambda r: r.sequence)
        self._pending.clear()

        baked = 0
        for request in requests:
            if request.generation != self._surface.generation:
                logger.debug(f"Discarding stale bake of {request.object_id}: surface rebound")
                continue
            region = self._surface.scene.find(request.object_id)
            if not isinstance(region, MosaicRegion):
                logger.debug(f"Discarding stale bake of {request.object_id}: object gone")
                continue
            if bake(self._surface, region):
                baked += 1
        return baked
