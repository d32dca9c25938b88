"""
Request dispatcher.

Decides, for each request, which stages run and in what order:

    Start -> Acquired -> Corrected -> Typed -> Exported

- "none": the acquired product is exported unchanged.
- "correction": the correction stage runs, its output is exported.
- any other processing type: correction runs, then the stage registered
  under that name. If no stage has that name the corrected product is
  exported and the result is flagged ``degraded`` (an unknown type means
  "correction only"; this fallback is intentional).

Correction is mandatory on every path except "none". If it is not
registered the request fails with StageNotConfigured before anything is
acquired.

Example:
    >>> dispatcher = RequestDispatcher(registry, MockSource(), ExportManager("result"))
    >>> result = dispatcher.request(start, end, "10.0|20.0|30.0|40.0", {}, "ndvi")
    >>> result.stages_applied
    ['correction', 'ndvi']
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import structlog

from copernicus_processing.exceptions import (
    AcquisitionFailure,
    ExportFailure,
    MalformedExtent,
    ProcessingError,
    StageExecutionError,
    StageNotConfigured,
)
from copernicus_processing.models.extent import Rectangle
from copernicus_processing.models.requests import (
    PROCESSING_CORRECTION,
    PROCESSING_NONE,
    DispatchResult,
    ProcessingRequest,
)
from copernicus_processing.utils.logging import request_context

if TYPE_CHECKING:
    from copernicus_processing.models.products import RasterProduct
    from copernicus_processing.sources.protocol import AcquisitionSource

    from .base import ProcessingStage
    from .registry import ProcessorRegistry

logger = structlog.get_logger(__name__)

EXTENT_DELIMITER = "|"
EXTENT_TOKENS = 4


class Exporter(Protocol):
    """What the dispatcher needs from an export manager."""

    def export(
        self,
        product: RasterProduct,
        *,
        label: str | None = None,
        request_id: str | None = None,
    ) -> Path: ...


def parse_extent(
    extent: str,
    delimiter: str = EXTENT_DELIMITER,
    *,
    crs: str = "EPSG:4326",
) -> Rectangle:
    """Parse a serialized extent ``x1|y1|x2|y2`` into a Rectangle.

    Whitespace around tokens is ignored.

    Args:
        extent: Serialized extent
        delimiter: Token delimiter
        crs: CRS of the coordinates

    Returns:
        Rectangle with corners (x1, y1) and (x2, y2)

    Raises:
        MalformedExtent: Unless there are exactly four finite numeric tokens
    """
    if not isinstance(extent, str):
        raise MalformedExtent(repr(extent), f"expected a string, got {type(extent).__name__}")

    tokens = extent.split(delimiter)
    if len(tokens) != EXTENT_TOKENS:
        raise MalformedExtent(extent, f"expected {EXTENT_TOKENS} tokens separated by {delimiter!r}, got {len(tokens)}")

    values = []
    for position, token in enumerate(tokens, start=1):
        try:
            # float() also accepts digit grouping such as "1_000"
            value = float(token.strip()) if "_" not in token else None
        except ValueError:
            value = None
        if value is None:
            raise MalformedExtent(extent, f"token {position} ({token!r}) is not a number")
        if not math.isfinite(value):
            raise MalformedExtent(extent, f"token {position} ({token!r}) is not finite")
        values.append(value)

    x1, y1, x2, y2 = values
    return Rectangle(x1=x1, y1=y1, x2=x2, y2=y2, crs=crs)


class RequestDispatcher:
    """Runs the acquire -> correct -> typed stage -> export policy.

    The dispatcher holds no per-request state; one instance can serve
    concurrent requests. It reads stages from the registry at dispatch
    time, so stages added later are picked up by later requests.
    """

    def __init__(
        self,
        registry: ProcessorRegistry,
        source: AcquisitionSource,
        exporter: Exporter,
        *,
        extent_delimiter: str = EXTENT_DELIMITER,
    ):
        """Initialize dispatcher.

        Args:
            registry: Stage registry
            source: Acquisition source
            exporter: Export manager
            extent_delimiter: Delimiter of serialized extents
        """
        self.registry = registry
        self.source = source
        self.exporter = exporter
        self.extent_delimiter = extent_delimiter

    def request(
        self,
        start: datetime,
        end: datetime,
        extent: str,
        params: Mapping[Any, Any] | None,
        selector: str,
    ) -> DispatchResult:
        """Parse the serialized extent and dispatch.

        Raises:
            MalformedExtent: If the extent cannot be parsed
        """
        rectangle = parse_extent(extent, self.extent_delimiter)
        return self.dispatch(
            ProcessingRequest(
                start=start,
                end=end,
                extent=rectangle,
                selector=selector,
                params=dict(params or {}),
            )
        )

    def dispatch(self, request: ProcessingRequest) -> DispatchResult:
        """Run the dispatch policy for one request.

        Args:
            request: Processing request

        Returns:
            DispatchResult with the artifact path

        Raises:
            StageNotConfigured: Correction is required but not registered
            AcquisitionFailure: The source produced no product
            StageExecutionError: A stage raised
            ExportFailure: The product could not be written
        """
        started = time.monotonic()
        selector = request.selector
        with request_context(request_id=request.request_id, selector=selector):
            return self._run(request, selector, started)

    def _run(self, request: ProcessingRequest, selector: str, started: float) -> DispatchResult:
        try:
            logger.info(
                "dispatch_started",
                start=request.start.isoformat(),
                end=request.end.isoformat(),
                bounds=request.extent.bounds,
            )

            correction: ProcessingStage | None = None
            if selector != PROCESSING_NONE:
                correction = self.registry.lookup(PROCESSING_CORRECTION)
                if correction is None:
                    raise StageNotConfigured(PROCESSING_CORRECTION)

            product = self._acquire(request)

            stages_applied: list[str] = []
            degraded = False

            if correction is not None:
                product = self._apply(PROCESSING_CORRECTION, correction, product)
                stages_applied.append(PROCESSING_CORRECTION)

                if selector != PROCESSING_CORRECTION:
                    typed = self.registry.lookup(selector)
                    if typed is None:
                        degraded = True
                        logger.warning(
                            "unknown_selector_degraded",
                            fallback=PROCESSING_CORRECTION,
                            registered=sorted(self.registry.names()),
                        )
                    else:
                        product = self._apply(selector, typed, product)
                        stages_applied.append(selector)

            artifact = self._export(product, selector, request.request_id)

            result = DispatchResult(
                request_id=request.request_id,
                selector=selector,
                artifact=artifact,
                stages_applied=stages_applied,
                degraded=degraded,
                elapsed_seconds=time.monotonic() - started,
            )
            logger.info(
                "dispatch_completed",
                artifact=str(artifact),
                stages=stages_applied,
                degraded=degraded,
                elapsed_seconds=round(result.elapsed_seconds, 3),
            )
            return result

        except ProcessingError as e:
            logger.error("dispatch_failed", error_type=type(e).__name__, error=str(e))
            raise

    def _acquire(self, request: ProcessingRequest) -> RasterProduct:
        try:
            product = self.source.acquire(request.start, request.end, request.extent, request.params)
        except AcquisitionFailure:
            raise
        except Exception as e:
            raise AcquisitionFailure(
                f"{type(e).__name__}: {e}", source=getattr(self.source, "source_name", None)
            ) from e

        if product is None:
            raise AcquisitionFailure(
                "Source returned no product", source=getattr(self.source, "source_name", None)
            )
        logger.info("product_acquired", source=getattr(self.source, "source_name", "unknown"))
        return product

    def _apply(self, name: str, stage: ProcessingStage, product: RasterProduct) -> RasterProduct:
        try:
            result = stage.transform(product)
        except ProcessingError:
            raise
        except Exception as e:
            raise StageExecutionError(name, f"{type(e).__name__}: {e}") from e

        if result is None:
            raise StageExecutionError(name, "transform returned no product")
        logger.info("stage_applied", stage=name)
        return result

    def _export(self, product: RasterProduct, label: str, request_id: str) -> Path:
        try:
            artifact = self.exporter.export(product, label=label, request_id=request_id)
        except ExportFailure:
            raise
        except Exception as e:
            raise ExportFailure(f"{type(e).__name__}: {e}") from e
        logger.info("product_exported", artifact=str(artifact))
        return Path(artifact)
