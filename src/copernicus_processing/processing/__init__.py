"""
Processing framework for the Copernicus processing core.

- ProcessingStage / BaseStage: Interface for processing stages
- ProcessorRegistry: Thread-safe stage registry
- RequestDispatcher: Which stages run for a request, in what order
- Core: Registry, source and exporter behind ``request()``

Adding a stage:

    >>> from copernicus_processing.processing import BaseStage, get_instance
    >>>
    >>> class EVI(BaseStage):
    ...     name = "evi"
    ...     version = "1.0.0"
    ...
    ...     def apply(self, product):
    ...         nir, red, blue = product.band("B08"), product.band("B04"), product.band("B02")
    ...         evi = 2.5 * (nir - red) / (nir + 6 * red - 7.5 * blue + 1)
    ...         return product.derive({"EVI": evi}, stage=self.name)
    >>>
    >>> core = get_instance()
    >>> core.add_processor(EVI())
    'evi'
    >>> core.request(start, end, "7.0|51.0|7.1|51.1", {}, "evi")
"""

from copernicus_processing.processing.base import BaseStage, ProcessingStage
from copernicus_processing.processing.core import Core, get_instance, reset_instance, set_instance
from copernicus_processing.processing.dispatcher import RequestDispatcher, parse_extent
from copernicus_processing.processing.registry import (
    ProcessorRegistry,
    builtin_stage,
    list_builtin_stages,
    load_builtin_stages,
)

__all__ = [
    "BaseStage",
    "Core",
    "ProcessingStage",
    "ProcessorRegistry",
    "RequestDispatcher",
    "builtin_stage",
    "get_instance",
    "list_builtin_stages",
    "load_builtin_stages",
    "parse_extent",
    "reset_instance",
    "set_instance",
]
