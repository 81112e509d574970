from __future__ import annotations

import math
import unittest

import numpy as np

from sepconv.buffers import ArrayBuffer, LumaBuffer, RgbBuffer
from sepconv.rescale import (
    RescaleRange,
    channel_min_max,
    channel_wise_rescale,
    min_max,
    rescale,
    rescale_between,
    rescale_value,
)


class TestRescaleRange(unittest.TestCase):
    def test_max_is_unit_interval(self) -> None:
        self.assertEqual((RescaleRange.MAX.min, RescaleRange.MAX.max), (0.0, 1.0))
        self.assertEqual(RescaleRange.MAX.span, 1.0)

    def test_custom(self) -> None:
        r = RescaleRange.custom(-2, 3)
        self.assertEqual((r.min, r.max), (-2.0, 3.0))
        self.assertEqual(r, RescaleRange(-2.0, 3.0))
        with self.assertRaises(ValueError):
            RescaleRange.custom(0.0, math.inf)
        with self.assertRaises(ValueError):
            RescaleRange.custom(math.nan, 1.0)


class TestMinMax(unittest.TestCase):
    def test_anchored_to_unit_interval(self) -> None:
        narrow = np.array([[0.2, 0.7], [0.4, 0.5]])
        self.assertEqual(min_max(narrow), (0.0, 1.0))

        wide = np.array([[-0.5, 0.7], [2.0, 0.5]])
        self.assertEqual(min_max(wide), (-0.5, 2.0))

    def test_channels_pooled(self) -> None:
        rgb = np.zeros((2, 2, 3))
        rgb[0, 0, 1] = 4.0
        rgb[1, 1, 2] = -3.0
        self.assertEqual(min_max(rgb), (-3.0, 4.0))

    def test_per_channel(self) -> None:
        rgb = np.zeros((2, 2, 3))
        rgb[0, 0, 1] = 4.0
        rgb[1, 1, 2] = -3.0
        self.assertEqual(channel_min_max(rgb), [(0.0, 1.0), (0.0, 4.0), (-3.0, 1.0)])

    def test_any_channel_count(self) -> None:
        arr = np.zeros((2, 3, 5))
        arr[..., 4] = 9.0
        pairs = channel_min_max(ArrayBuffer(arr, channel_axis=2))
        self.assertEqual(len(pairs), 5)
        self.assertEqual(pairs[4], (0.0, 9.0))

    def test_non_finite_samples_are_ignored(self) -> None:
        arr = np.array([[np.nan, 3.0], [np.inf, -1.0]])
        self.assertEqual(min_max(arr), (-1.0, 3.0))
        self.assertEqual(min_max(np.full((2, 2), np.nan)), (0.0, 1.0))


class TestRescaleValue(unittest.TestCase):
    def test_affine_map(self) -> None:
        self.assertEqual(rescale_value(0.0, 10.0, 5.0, RescaleRange.custom(-1, 1)), 0.0)
        self.assertEqual(rescale_value(0.0, 10.0, 10.0, RescaleRange.custom(-1, 1)), 1.0)
        self.assertEqual(rescale_value(-1.0, 1.0, 0.0), 0.5)

    def test_degenerate_interval_maps_to_range_min(self) -> None:
        target = RescaleRange.custom(2.0, 3.0)
        with self.assertLogs("sepconv.rescale", level="WARNING"):
            self.assertEqual(rescale_value(0.5, 0.5, 0.7, target), 2.0)

        values = np.array([0.1, 0.5, 0.9], dtype=np.float32)
        with self.assertLogs("sepconv.rescale", level="WARNING"):
            out = rescale_value(0.5, 0.5, values, target)
        np.testing.assert_array_equal(out, [2.0, 2.0, 2.0])
        self.assertEqual(out.dtype, np.float32)


class TestRescale(unittest.TestCase):
    def test_max_on_normalized_buffer_is_a_no_op(self) -> None:
        arr = np.random.default_rng(4).random((6, 5, 3))
        before = arr.copy()
        rescale(arr, RescaleRange.MAX)
        np.testing.assert_allclose(arr, before, rtol=0, atol=1e-15)

    def test_round_trip_through_unit_interval(self) -> None:
        arr = np.random.default_rng(8).uniform(-2.0, 3.0, size=(5, 5))
        arr[0, 0] = -2.0
        arr[4, 4] = 3.0
        before = arr.copy()

        rescale(arr, RescaleRange.MAX)
        self.assertAlmostEqual(arr.min(), 0.0)
        self.assertAlmostEqual(arr.max(), 1.0)

        rescale(arr, RescaleRange.custom(-2.0, 3.0))
        np.testing.assert_allclose(arr, before, atol=1e-12)

    def test_round_trip_with_measured_interval(self) -> None:
        arr = np.random.default_rng(9).uniform(2.0, 5.0, size=(4, 6))
        before = arr.copy()

        lo, hi = min_max(arr)
        rescale(arr)
        rescale_between(arr, RescaleRange.MAX, RescaleRange.custom(lo, hi))
        np.testing.assert_allclose(arr, before, atol=1e-12)

    def test_global_rescale_uses_one_pair(self) -> None:
        rgb = np.zeros((1, 2, 3))
        rgb[0, :, 0] = [0.0, 2.0]
        rgb[0, :, 1] = [0.0, 0.5]
        rgb[0, :, 2] = [-1.0, 1.0]
        expected = (rgb + 1.0) / 3.0

        rescale(RgbBuffer(rgb))
        np.testing.assert_allclose(rgb, expected)

    def test_channel_wise_rescale_uses_own_pairs(self) -> None:
        rgb = np.zeros((1, 2, 3))
        rgb[0, :, 0] = [0.0, 2.0]
        rgb[0, :, 1] = [0.0, 0.5]
        rgb[0, :, 2] = [-1.0, 1.0]

        channel_wise_rescale(RgbBuffer(rgb))
        np.testing.assert_allclose(rgb[0, :, 0], [0.0, 1.0])
        np.testing.assert_allclose(rgb[0, :, 1], [0.0, 0.5])
        np.testing.assert_allclose(rgb[0, :, 2], [0.0, 1.0])

    def test_channel_wise_matches_global_for_single_channel(self) -> None:
        arr = np.random.default_rng(12).uniform(-4.0, 7.0, size=(5, 8))
        a = arr.copy()
        b = arr.copy()
        target = RescaleRange.custom(10.0, 20.0)

        rescale(LumaBuffer(a), target)
        channel_wise_rescale(LumaBuffer(b), target)
        np.testing.assert_array_equal(a, b)

    def test_empty_buffer(self) -> None:
        arr = np.zeros((0, 4))
        self.assertIs(rescale(arr), arr)
        self.assertIs(channel_wise_rescale(arr), arr)


if __name__ == "__main__":
    unittest.main()
