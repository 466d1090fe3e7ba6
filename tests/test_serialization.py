"""Tests for result serialization."""

import json
import struct

import numpy as np
import pytest

from ecg_binarization.bitpacking import PackedPanel, pack_bits
from ecg_binarization.exceptions import DecodeError
from ecg_binarization.serialization import (
    from_binary_frame,
    to_binary_frame,
    to_json,
    to_records,
)


def _panel(index, lead, mask, unit=200_000):
    return PackedPanel(
        index=index,
        lead=lead,
        calibration_unit=unit,
        width=mask.shape[1],
        height=mask.shape[0],
        words=pack_bits(mask),
    )


@pytest.fixture
def panels():
    high_bit = np.zeros((1, 32), dtype=bool)
    high_bit[0, 31] = True
    rng = np.random.default_rng(9)
    return [
        _panel(0, "I", high_bit),
        _panel(1, "II", rng.random((3, 17)) < 0.5),
    ]


class TestBinaryFrame:

    def test_layout(self, panels):
        frame = to_binary_frame(panels)
        values = struct.unpack(f">{len(frame) // 4}i", frame)

        assert values[0] == 2
        assert values[1:5] == (200_000, 32, 1, 1)
        assert values[5] == -(1 << 31)
        assert values[6:10] == (200_000, 17, 3, 2)
        assert len(values) == 1 + 4 + 1 + 4 + 2

    def test_round_trip(self, panels):
        decoded = from_binary_frame(to_binary_frame(panels))

        assert [p.lead for p in decoded] == ["I", "II"]
        for original, restored in zip(panels, decoded):
            assert restored.width == original.width
            assert restored.height == original.height
            assert restored.calibration_unit == original.calibration_unit
            np.testing.assert_array_equal(restored.words, original.words)

    def test_truncated_frame(self, panels):
        frame = to_binary_frame(panels)

        with pytest.raises(DecodeError):
            from_binary_frame(frame[:-4])

    def test_trailing_data(self, panels):
        with pytest.raises(DecodeError):
            from_binary_frame(to_binary_frame(panels) + b"\x00\x00\x00\x00")

    def test_inconsistent_word_count(self):
        frame = struct.pack(">6i", 1, 1, 32, 2, 1, 0)

        with pytest.raises(DecodeError):
            from_binary_frame(frame)

    def test_negative_dimensions(self):
        # width -1 with height 32 packs into n == -1 words
        frame = struct.pack(">5i", 1, 1, -1, 32, -1)

        with pytest.raises(DecodeError):
            from_binary_frame(frame)

    def test_lead_names_from_given_config(self, panels, config):
        config.segmentation.lead_names = ["A", "B"] + config.segmentation.lead_names[2:]

        decoded = from_binary_frame(to_binary_frame(panels), config)

        assert [p.lead for p in decoded] == ["A", "B"]

    def test_empty_frame(self):
        with pytest.raises(DecodeError):
            from_binary_frame(b"")


class TestRecords:

    def test_json(self, panels):
        records = json.loads(to_json(panels))

        assert records == to_records(panels)
        assert records[0]["data"] == [1 << 31]
        assert records[1]["n"] == 2
