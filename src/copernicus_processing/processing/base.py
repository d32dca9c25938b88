"""
Processing stage interface.

A stage is one named, pluggable transformation of a RasterProduct.
Anything with a ``name`` and a ``transform(product) -> product`` method
satisfies the ProcessingStage protocol; BaseStage is a convenience base
class adding version/description metadata and logging.

Stages must not mutate their input. They return a new product, usually
built with ``RasterProduct.derive()``.

Example:
    >>> class Clip(BaseStage):
    ...     name = "clip"
    ...     version = "1.0.0"
    ...     description = "Clip all bands to [0, 1]"
    ...
    ...     def apply(self, product):
    ...         bands = {k: np.clip(v, 0, 1) for k, v in product.bands.items()}
    ...         return product.derive(bands, stage=self.name)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

if TYPE_CHECKING:
    from copernicus_processing.models.products import RasterProduct

logger = structlog.get_logger(__name__)


@runtime_checkable
class ProcessingStage(Protocol):
    """Interface for processing stages.

    The registry stores stages by ``name`` and never inspects what
    ``transform`` does.
    """

    @property
    def name(self) -> str:
        """Unique, non-empty stage name."""
        ...

    def transform(self, product: RasterProduct) -> RasterProduct:
        """Return a new product derived from ``product``.

        Args:
            product: Input raster product (not modified)

        Returns:
            Output raster product
        """
        ...


class BaseStage(ABC):
    """Base class for stages.

    Subclasses set ``name`` and implement ``apply``. ``transform`` wraps
    it with validation hooks and debug logging.
    """

    # Override in subclass
    name: str = "base_stage"
    version: str = "0.0.0"
    description: str = "Base stage - do not use directly"

    def validate(self, product: RasterProduct) -> None:
        """Check that ``product`` can be processed.

        Override to check required bands etc. Raise ValueError on failure.
        """

    @abstractmethod
    def apply(self, product: RasterProduct) -> RasterProduct:
        """Compute the output product."""
        raise NotImplementedError

    def transform(self, product: RasterProduct) -> RasterProduct:
        """Validate, then apply the stage.

        Args:
            product: Input raster product

        Returns:
            New raster product
        """
        self.validate(product)
        result = self.apply(product)
        logger.debug(
            "stage_transformed",
            stage=self.name,
            version=self.version,
            input_bands=product.band_names,
            output_bands=result.band_names,
        )
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version!r})"
