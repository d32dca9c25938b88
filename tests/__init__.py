"""
Copernicus Processing Core - Test Suite

Unit and integration tests for the request dispatch pipeline.

Test Organization:
- test_models.py: Rectangle, RasterProduct and request models
- test_registry.py: Stage registry and built-in stage set
- test_builtin_stages.py: Radiometric correction, NDVI, NDMI
- test_dispatcher.py: Extent parsing and the dispatch policy
- test_core.py: Core facade and the shared instance
- test_sources.py: Mock, file and STAC acquisition sources
- test_export.py: Writers and export manager
- test_config.py: Settings loading
- test_utils.py: Time and logging helpers
- test_cli.py: Command-line interface

Fixtures are in tests/fixtures/:
- factories.py: ProductFactory, recording test doubles, GeoTIFF helper

Run tests:
    $ pytest tests/ -v
    $ pytest tests/ --cov=copernicus_processing
"""

__version__ = "1.0.0"
