"""
Batch digitization script for ECG strip images.

This script splits every ECG image in a directory into 12 packed lead panels
and saves the results.
"""

import argparse
import copy
import logging
import sys
from pathlib import Path
import pandas as pd
from tqdm import tqdm

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ecg_binarization.config import get_config
from ecg_binarization.exceptions import DigitizationError
from ecg_binarization.image_io import save_lead_images
from ecg_binarization.overlay import save_overlay
from ecg_binarization.pipeline import ECGLeadPipeline
from ecg_binarization.serialization import to_binary_frame, to_json


def parse_args(argv=None):
    """Parse command line arguments."""
    output_config = get_config().output
    parser = argparse.ArgumentParser(description="Split ECG strip images into packed lead panels")

    parser.add_argument(
        "--input_dir",
        type=str,
        required=True,
        help="Path to directory containing ECG images"
    )
    parser.add_argument(
        "--output_dir",
        type=str,
        default=str(output_config.output_dir),
        help="Path to save results"
    )
    parser.add_argument(
        "--output_format",
        type=str,
        default=output_config.output_format,
        choices=["json", "binary"],
        help="Output format for packed panels"
    )
    parser.add_argument(
        "--save_leads",
        action="store_true",
        default=output_config.save_lead_images,
        help="Also save every lead panel as a PNG"
    )
    parser.add_argument(
        "--save_overlay",
        action="store_true",
        default=output_config.save_overlay,
        help="Save a debug overlay with the detected layout"
    )
    parser.add_argument(
        "--no_calibration",
        action="store_true",
        help="Skip ruled grid calibration"
    )
    parser.add_argument(
        "--image_extensions",
        type=str,
        default="png,jpg,jpeg",
        help="Comma-separated list of image extensions to process"
    )
    parser.add_argument(
        "--log_level",
        type=str,
        default=None,
        help="Logging level (defaults to the configured level)"
    )

    return parser.parse_args(argv)


def get_image_files(input_dir, extensions):
    """
    Get all image files from directory.

    Args:
        input_dir: Input directory
        extensions: List of file extensions

    Returns:
        List of image file paths
    """
    input_dir = Path(input_dir)
    image_files = set()

    for ext in extensions:
        image_files.update(input_dir.glob(f"*.{ext}"))
        image_files.update(input_dir.glob(f"*.{ext.upper()}"))

    return sorted(image_files)


def save_result(result, stem, output_dir, output_format):
    """
    Save packed panels of one image.

    Args:
        result: DigitizationResult
        stem: Source image name without extension
        output_dir: Output directory
        output_format: 'json' or 'binary'

    Returns:
        Path of the written file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if output_format == "json":
        output_path = output_dir / f"{stem}.json"
        output_path.write_text(to_json(result.panels, indent=2))
    else:
        output_path = output_dir / f"{stem}.bin"
        output_path.write_bytes(to_binary_frame(result.panels))

    return output_path


def summarize(stem, result):
    """One summary row for the CSV report."""
    return {
        "image": stem,
        "used_fallback": result.used_fallback,
        "separators": " ".join(str(y) for y in result.separators or ()),
        "left_margin": result.left_margin,
        "calibration_unit": result.calibration_unit,
        "panel_width": result.panels[0].width,
        "panel_height": result.panels[0].height,
    }


def main(args):
    """
    Main digitization function.

    Args:
        args: Command line arguments
    """
    config = copy.deepcopy(get_config())
    config.pipeline.calibrate_grid = not args.no_calibration
    config.output.output_dir = Path(args.output_dir)
    config.output.output_format = args.output_format
    config.output.save_lead_images = args.save_leads
    config.output.save_overlay = args.save_overlay

    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    input_dir = Path(args.input_dir)
    output_dir = config.output.output_dir

    print("=" * 60)
    print("ECG Strip Binarization")
    print("=" * 60)
    print(f"Input directory: {input_dir}")
    print(f"Output directory: {output_dir}")
    print(f"Output format: {config.output.output_format}")
    print(f"Grid calibration: {config.pipeline.calibrate_grid}")
    print("=" * 60)

    extensions = args.image_extensions.split(',')
    image_files = get_image_files(input_dir, extensions)
    print(f"\nFound {len(image_files)} images to process")

    if len(image_files) == 0:
        print("No images found. Exiting.")
        return 0

    pipeline = ECGLeadPipeline(config)
    rows = []

    for image_path in tqdm(image_files, desc="Processing images", disable=not config.verbose):
        stem = image_path.stem

        try:
            result = pipeline.process(image_path)
            save_result(result, stem, output_dir, config.output.output_format)

            if config.output.save_lead_images:
                save_lead_images(result.panels, output_dir / "leads" / stem)
            if config.output.save_overlay:
                save_overlay(result, output_dir / "overlays" / f"{stem}_overlay.png", config)
        except (DigitizationError, OSError) as e:
            logging.getLogger(__name__).error("Error processing %s: %s", image_path, e)
            continue

        rows.append(summarize(stem, result))

    print(f"\nSuccessfully processed {len(rows)}/{len(image_files)} images")

    if rows:
        summary = pd.DataFrame(rows)
        summary_path = output_dir / "summary.csv"
        summary.to_csv(summary_path, index=False)

        print("\n" + "=" * 60)
        print("Digitization Summary")
        print("=" * 60)
        print(f"Fallback segmentations: {int(summary['used_fallback'].sum())}")
        print(f"Summary written to: {summary_path}")
        print("=" * 60)

    return 0 if len(rows) == len(image_files) else 1


if __name__ == "__main__":
    args = parse_args()
    sys.exit(main(args))
