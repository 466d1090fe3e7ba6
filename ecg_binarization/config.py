"""
Configuration file for the ECG strip binarization pipeline.

Contains all thresholds, adaptive-search parameters, and output settings.
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Tuple, List


# Project root directory
ROOT_DIR = Path(__file__).parent.parent.absolute()
OUTPUT_DIR = ROOT_DIR / "outputs"


@dataclass
class BinarizationConfig:
    """Binarization and denoising configuration."""

    # Ink rule: R < ink_red_max and G < ink_green_max
    ink_red_max: int = 200
    ink_green_max: int = 200

    # Dark colored background override: R < 150 and G < 150 and B < 120
    dark_red_max: int = 150
    dark_green_max: int = 150
    dark_blue_max: int = 120

    # Isolated pixel removal (single pass, borders exempt)
    remove_isolated_pixels: bool = True


@dataclass
class MarginConfig:
    """Left margin trimming configuration."""

    min_column_ink: int = 10  # ink pixels marking content start


@dataclass
class GridCalibrationConfig:
    """Ruled grid line detection configuration."""

    # Qualifying pixel: R >= red_threshold and G <= green_max and B <= blue_max
    initial_red_threshold: int = 200
    green_max: int = 100
    blue_max: int = 100

    # A row/column is a line if this percent of its pixels qualify
    line_coverage_percent: int = 80

    # Adaptive red threshold search
    min_lines: int = 30
    max_lines: int = 40
    threshold_step: int = 5
    max_iterations: int = 20

    # Calibration unit
    fine_divisions: int = 5  # fine divisions per coarse ruled square
    unit_scale: int = 1_000_000


@dataclass
class SeparatorConfig:
    """Horizontal separator search configuration."""

    num_separators: int = 7

    # Initial thresholds as fractions of width / height
    row_threshold_ratio: float = 0.01
    min_block_height_ratio: float = 0.01

    # Adjustment factors
    tighten_block_factor: float = 1.1
    tighten_row_factor: float = 0.9
    relax_block_factor: float = 0.9
    relax_row_factor: float = 1.1

    max_iterations: int = 50

    # Cut position inside a whitespace block
    first_cut_ratio: float = 0.7
    last_cut_ratio: float = 0.3
    inner_cut_ratio: float = 0.5


@dataclass
class SegmentationConfig:
    """Panel segmentation configuration."""

    num_zones: int = 8
    edge_trim_ratio: float = 0.05  # trimmed from both left and right

    lead_names: List[str] = field(default_factory=lambda: [
        'I', 'II', 'III', 'aVR', 'aVL', 'aVF',
        'V1', 'V2', 'V3', 'V4', 'V5', 'V6'
    ])


@dataclass
class PipelineConfig:
    """Pipeline stage toggles."""

    calibrate_grid: bool = True
    trim_left_margin: bool = True


@dataclass
class OutputConfig:
    """Output configuration."""

    output_dir: Path = OUTPUT_DIR
    output_format: str = "json"  # json, binary
    save_lead_images: bool = False
    save_overlay: bool = False
    overlay_color: Tuple[int, int, int] = (255, 0, 0)  # RGB
    overlay_thickness: int = 2


# Global configuration
@dataclass
class Config:
    """Master configuration class."""

    binarization: BinarizationConfig = field(default_factory=BinarizationConfig)
    margin: MarginConfig = field(default_factory=MarginConfig)
    grid: GridCalibrationConfig = field(default_factory=GridCalibrationConfig)
    separators: SeparatorConfig = field(default_factory=SeparatorConfig)
    segmentation: SegmentationConfig = field(default_factory=SegmentationConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Logging
    log_level: str = "INFO"
    verbose: bool = True


# Create default configuration instance
config = Config()


def get_config() -> Config:
    """Get the global configuration instance."""
    return config


def update_config(**kwargs):
    """Update configuration with new values."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration key: {key}")


if __name__ == "__main__":
    # Print configuration
    cfg = get_config()
    print("ECG Strip Binarization Configuration")
    print("=" * 50)
    print(f"Root Directory: {ROOT_DIR}")
    print(f"Output Directory: {cfg.output.output_dir}")
    print(f"\nBinarization Config:")
    print(f"  Ink rule: R < {cfg.binarization.ink_red_max}, G < {cfg.binarization.ink_green_max}")
    print(f"  Remove isolated pixels: {cfg.binarization.remove_isolated_pixels}")
    print(f"\nGrid Config:")
    print(f"  Initial red threshold: {cfg.grid.initial_red_threshold}")
    print(f"  Target lines: [{cfg.grid.min_lines}, {cfg.grid.max_lines}]")
    print(f"\nSeparator Config:")
    print(f"  Separators: {cfg.separators.num_separators}")
    print(f"  Max iterations: {cfg.separators.max_iterations}")
