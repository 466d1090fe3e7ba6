"""Tests for left margin trimming."""

import numpy as np

from ecg_binarization.margin import find_left_margin, trim_left_margin


class TestLeftMargin:

    def test_all_background_mask_unchanged(self):
        mask = np.zeros((30, 20), dtype=bool)

        trimmed, margin = trim_left_margin(mask, 10)

        assert margin == 0
        np.testing.assert_array_equal(trimmed, mask)

    def test_first_qualifying_column_starts_content(self):
        mask = np.zeros((30, 20), dtype=bool)
        mask[:9, 3] = True     # 9 ink pixels: below threshold
        mask[5:15, 7] = True   # 10 ink pixels
        mask[:, 12] = True

        trimmed, margin = trim_left_margin(mask, 10)

        assert margin == 7
        assert trimmed.shape == (30, 13)
        np.testing.assert_array_equal(trimmed, mask[:, 7:])

    def test_content_at_first_column(self):
        mask = np.zeros((30, 20), dtype=bool)
        mask[:, 0] = True

        assert find_left_margin(mask, 10) == 0

    def test_uses_configured_threshold(self):
        mask = np.zeros((30, 20), dtype=bool)
        mask[:10, 4] = True

        assert find_left_margin(mask) == 4
