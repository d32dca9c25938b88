"""
Tests for the built-in processing stages.
"""

from __future__ import annotations

import numpy as np
import pytest

from copernicus_processing.processing.builtin import (
    NDMI,
    NDVI,
    RadiometricCorrection,
    normalized_difference,
)
from copernicus_processing.processing.builtin.correction import _parse_baseline


class TestParseBaseline:
    """Tests for processing baseline parsing."""

    def test_dotted(self):
        assert _parse_baseline("05.09") == (5, 9)

    def test_product_name_style(self):
        assert _parse_baseline("N0400") == (4, 0)

    def test_invalid(self):
        assert _parse_baseline("latest") is None
        assert _parse_baseline(None) is None


class TestRadiometricCorrection:
    """Tests for RadiometricCorrection."""

    def test_offset_for_recent_baseline(self, product_factory):
        """Test baseline >= 04.00 applies the -1000 offset."""
        product = product_factory.create(value=2000)

        corrected = RadiometricCorrection().transform(product)

        np.testing.assert_allclose(corrected.band("B04"), 0.1, rtol=1e-6)
        assert corrected.metadata["radiometric_offset"] == -1000.0

    def test_no_offset_for_old_baseline(self, product_factory):
        """Test older baselines have no offset."""
        product = product_factory.create(
            value=2000, metadata={"processing_baseline": "02.12"}
        )

        corrected = RadiometricCorrection().transform(product)

        np.testing.assert_allclose(corrected.band("B04"), 0.2, rtol=1e-6)
        assert corrected.metadata["radiometric_offset"] == 0.0

    def test_fixed_offset(self, product_factory):
        corrected = RadiometricCorrection(offset=0.0).transform(product_factory.create(value=3000))
        np.testing.assert_allclose(corrected.band("B08"), 0.3, rtol=1e-6)

    def test_nodata_becomes_nan(self, product_factory):
        """Test nodata pixels are NaN after correction."""
        product = product_factory.create(value=2000)
        product.bands["B04"][0, 0] = 0

        corrected = RadiometricCorrection().transform(product)

        assert np.isnan(corrected.band("B04")[0, 0])
        assert np.isnan(corrected.nodata)
        assert np.isfinite(corrected.band("B04")[1, 1])

    def test_clipped_to_unit_range(self, product_factory):
        """Test values below the offset clip to zero."""
        corrected = RadiometricCorrection().transform(product_factory.create(value=500))
        assert float(corrected.band("B02").min()) == 0.0

    def test_passthrough_bands(self, product_factory):
        """Test classification bands are copied unchanged."""
        product = product_factory.create(
            {
                "B04": np.full((2, 2), 2000, dtype="uint16"),
                "SCL": np.full((2, 2), 4, dtype="uint8"),
            }
        )

        corrected = RadiometricCorrection().transform(product)

        assert corrected.band("SCL").dtype == np.uint8
        np.testing.assert_array_equal(corrected.band("SCL"), 4)

    def test_rejects_only_passthrough_bands(self, product_factory):
        product = product_factory.create({"SCL": np.ones((2, 2), dtype="uint8")})
        with pytest.raises(ValueError, match="no spectral bands"):
            RadiometricCorrection().transform(product)

    def test_returns_new_product(self, product_factory):
        """Test input product is not modified."""
        product = product_factory.create(value=2000)

        corrected = RadiometricCorrection().transform(product)

        assert corrected is not product
        assert product.band("B04").dtype == np.uint16
        assert corrected.history == ("correction",)
        assert corrected.band("B04").dtype == np.float32

    def test_invalid_quantification(self):
        with pytest.raises(ValueError):
            RadiometricCorrection(quantification_value=0)


class TestIndices:
    """Tests for NDVI and NDMI."""

    def test_normalized_difference(self):
        result = normalized_difference(np.array([[0.5]]), np.array([[0.1]]))
        assert result.dtype == np.float32
        assert result[0, 0] == pytest.approx(0.4 / 0.6, rel=1e-4)

    def test_normalized_difference_zero_sum(self):
        """Test zero inputs give zero rather than a division error."""
        result = normalized_difference(np.zeros((1, 1)), np.zeros((1, 1)))
        assert result[0, 0] == 0.0

    def test_nan_propagates(self):
        result = normalized_difference(np.array([[np.nan]]), np.array([[0.1]]))
        assert np.isnan(result[0, 0])

    def test_ndvi(self, product_factory):
        """Test NDVI output band and value."""
        product = product_factory.create_reflectance(red=0.1, nir=0.5)

        ndvi = NDVI().transform(product)

        assert ndvi.band_names == ["NDVI"]
        np.testing.assert_allclose(ndvi.band("NDVI"), 0.4 / 0.6, rtol=1e-4)
        assert ndvi.metadata["index"] == "NDVI"
        assert ndvi.history == ("ndvi",)

    def test_ndmi(self, product_factory):
        product = product_factory.create_reflectance(red=0.1, nir=0.4, swir=0.2)

        ndmi = NDMI().transform(product)

        np.testing.assert_allclose(ndmi.band("NDMI"), 0.2 / 0.6, rtol=1e-4)

    def test_missing_band(self, product_factory):
        """Test a clear error names the missing band."""
        product = product_factory.create({"B04": np.ones((2, 2), dtype="float32")})

        with pytest.raises(ValueError, match="B08"):
            NDVI().transform(product)

    def test_keeps_georeferencing(self, product_factory):
        product = product_factory.create_reflectance(red=0.1, nir=0.5)

        ndvi = NDVI().transform(product)

        assert ndvi.transform == product.transform
        assert ndvi.crs == product.crs
