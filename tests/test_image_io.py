"""Tests for image decoding and lead image export."""

import cv2
import numpy as np
import pytest
from PIL import Image

from ecg_binarization.bitpacking import PackedPanel, pack_bits
from ecg_binarization.exceptions import DecodeError
from ecg_binarization.image_io import (
    as_pixel_grid,
    decode_image,
    decode_raw_rgb,
    load_image,
    panel_to_image,
    save_lead_images,
)


def _encode_png(rgb):
    ok, buffer = cv2.imencode(".png", cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
    assert ok
    return buffer.tobytes()


class TestDecoding:

    def test_decode_png_bytes(self):
        rgb = np.zeros((4, 5, 3), dtype=np.uint8)
        rgb[1, 2] = (10, 20, 30)

        grid = decode_image(_encode_png(rgb))

        np.testing.assert_array_equal(grid, rgb)
        assert not grid.flags.writeable

    def test_undecodable_bytes(self):
        with pytest.raises(DecodeError):
            decode_image(b"definitely not an image")

    def test_empty_bytes(self):
        with pytest.raises(DecodeError):
            decode_image(b"")

    def test_load_image(self, tmp_path):
        rgb = np.full((6, 7, 3), 200, dtype=np.uint8)
        path = tmp_path / "strip.png"
        path.write_bytes(_encode_png(rgb))

        np.testing.assert_array_equal(load_image(path), rgb)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")

    def test_load_corrupt_file(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"\x89PNG garbage")

        with pytest.raises(DecodeError):
            load_image(path)

    def test_decode_raw_rgb(self):
        # Per pixel: [ignored, B, G, R]
        payload = bytes([0, 3, 2, 1, 0, 30, 20, 10])

        grid = decode_raw_rgb(2, 1, payload)

        assert grid.tolist() == [[[1, 2, 3], [10, 20, 30]]]

    def test_decode_raw_rgb_size_mismatch(self):
        with pytest.raises(DecodeError):
            decode_raw_rgb(2, 2, bytes(12))

    def test_decode_raw_rgb_bad_dimensions(self):
        with pytest.raises(DecodeError):
            decode_raw_rgb(0, 2, b"")


class TestPixelGrid:

    def test_drops_alpha(self):
        rgba = np.zeros((2, 3, 4), dtype=np.uint8)
        rgba[..., 3] = 255

        grid = as_pixel_grid(rgba)

        assert grid.shape == (2, 3, 3)

    def test_copy_is_independent(self):
        rgb = np.zeros((2, 2, 3), dtype=np.uint8)

        grid = as_pixel_grid(rgb)
        rgb[0, 0] = 255

        assert grid[0, 0].tolist() == [0, 0, 0]

    @pytest.mark.parametrize("shape, dtype", [
        ((4, 4), np.uint8),
        ((4, 4, 2), np.uint8),
        ((4, 4, 3), np.float32),
    ])
    def test_rejects_malformed(self, shape, dtype):
        with pytest.raises(ValueError):
            as_pixel_grid(np.zeros(shape, dtype=dtype))


class TestLeadImages:

    def _packed(self, lead, mask):
        return PackedPanel(0, lead, 1, mask.shape[1], mask.shape[0], pack_bits(mask))

    def test_panel_to_image(self):
        mask = np.array([[True, False], [False, True]])

        image = panel_to_image(self._packed("I", mask))

        assert image.tolist() == [[0, 255], [255, 0]]

    def test_save_lead_images(self, tmp_path):
        mask = np.zeros((3, 4), dtype=bool)
        mask[1, 2] = True
        panels = [self._packed("I", mask), self._packed("V6", mask)]

        paths = save_lead_images(panels, tmp_path / "leads")

        assert [p.name for p in paths] == ["I.png", "V6.png"]
        restored = np.array(Image.open(paths[1]))
        assert restored.shape == (3, 4)
        assert restored[1, 2] == 0
        assert restored[0, 0] == 255

    def test_save_lead_images_prefix(self, tmp_path):
        panels = [self._packed("aVL", np.ones((2, 2), dtype=bool))]

        paths = save_lead_images(panels, tmp_path, prefix="ecg01")

        assert paths[0].name == "ecg01_aVL.png"
