"""Tests for ruled grid calibration."""

import numpy as np
import pytest

from ecg_binarization.grid_calibration import (
    GridCalibrator,
    calibrate_grid,
    calibration_units_from_gaps,
    min_positive_gap,
)

from conftest import make_blank_image, make_ruled_image


class TestCalibrationUnits:

    @pytest.mark.parametrize("gh, gv, base", [
        (10, 12, 12),
        (12, 10, 12),
        (None, 7, 7),
        (9, None, 9),
        (None, None, 1),
        (0, -3, 1),
    ])
    def test_base_unit(self, gh, gv, base):
        base_unit, unit = calibration_units_from_gaps(gh, gv)

        assert base_unit == base
        assert unit == base * 1_000_000 // 5
        assert unit == base * 200_000

    def test_min_positive_gap(self):
        assert min_positive_gap([5, 15, 20, 40]) == 5
        assert min_positive_gap([40, 5, 20]) == 15
        assert min_positive_gap([3]) is None
        assert min_positive_gap([]) is None


class TestGridCalibrator:

    def test_detects_ruled_lines(self, config):
        image = make_ruled_image()

        calibration = GridCalibrator(config).calibrate(image)

        assert len(calibration.horizontal_lines) == 35
        assert calibration.horizontal_lines[:3] == (5, 15, 25)
        assert calibration.vertical_lines[:3] == (6, 18, 30)
        assert calibration.converged
        assert calibration.red_threshold == 200
        assert calibration.iterations == 1
        assert calibration.base_unit == 12
        assert calibration.calibration_unit == 2_400_000

    def test_lowers_red_threshold_for_faint_lines(self, config):
        image = make_ruled_image(color=(180, 30, 30))

        calibration = GridCalibrator(config).calibrate(image)

        assert calibration.converged
        assert calibration.red_threshold == 180
        assert calibration.iterations == 5
        assert calibration.base_unit == 12

    def test_raises_red_threshold_for_too_many_lines(self, config):
        # 70 lines at R=255, 35 of them at R=210: only the strong ones survive
        image = make_ruled_image(height=350, row_step=5, col_step=12, color=(210, 0, 0))
        image[5::10, :] = (255, 0, 0)

        calibration = GridCalibrator(config).calibrate(image)

        assert calibration.converged
        assert calibration.red_threshold == 215
        assert calibration.iterations == 4
        assert len(calibration.horizontal_lines) == 35
        # The faint columns no longer qualify either
        assert calibration.vertical_lines == ()
        assert calibration.base_unit == 10

    def test_partial_rows_are_not_lines(self, config):
        image = make_blank_image(100, 100)
        image[10, :79] = (255, 0, 0)
        image[20, :80] = (255, 0, 0)

        horizontal, _ = GridCalibrator(config).detect_lines(image, 200)

        np.testing.assert_array_equal(horizontal, [20])

    def test_blank_image_clamps_unit(self, config):
        calibration = calibrate_grid(make_blank_image(), config)

        assert calibration.horizontal_lines == ()
        assert not calibration.converged
        assert calibration.iterations == config.grid.max_iterations
        assert calibration.base_unit == 1
        assert calibration.calibration_unit == 200_000
