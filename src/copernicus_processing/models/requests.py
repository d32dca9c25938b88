"""
Request and result models for the dispatch pipeline.

- ProcessingRequest: what a caller asks for
- DispatchResult: what the dispatcher did and where the artifact went
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from copernicus_processing.models.extent import Rectangle

# Reserved processing types
PROCESSING_NONE = "none"
PROCESSING_CORRECTION = "correction"
PROCESSING_NDVI = "ndvi"
PROCESSING_NDMI = "ndmi"


class ProcessingRequest(BaseModel):
    """A single processing request.

    The time window is not checked for ordering here; acquisition
    sources reject windows they cannot serve.

    Attributes:
        start: Acquisition window start
        end: Acquisition window end
        extent: Area of interest
        selector: Processing type ("none", "correction" or a stage name)
        params: Passed unmodified to the acquisition source
        request_id: Identifier used in logs and artifact names
    """

    start: datetime
    end: datetime
    extent: Rectangle
    selector: str = Field(default=PROCESSING_CORRECTION)
    params: dict[Any, Any] = Field(default_factory=dict)
    request_id: str = Field(default_factory=lambda: uuid4().hex[:12])


class DispatchResult(BaseModel):
    """Outcome of a dispatched request.

    Attributes:
        request_id: Request identifier
        selector: Processing type requested
        artifact: Path of the exported product
        stages_applied: Stage names applied, in order
        degraded: True when the selector matched no stage and the
            request fell back to correction only
    """

    request_id: str
    selector: str
    artifact: Path
    stages_applied: list[str] = Field(default_factory=list)
    degraded: bool = False
    elapsed_seconds: float = 0.0
