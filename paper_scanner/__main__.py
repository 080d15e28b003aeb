#!/usr/bin/env python3
"""
CLI interface for the paper scanner.

Usage:
    python -m paper_scanner -i page1.jpg page2.jpg -o scan.pdf
    python -m paper_scanner -i photo.jpg -o flat.png --raw
"""

import argparse
import sys
from pathlib import Path

import cv2

from page_output import DocumentAssembler, PageEnhancer

from .config import PipelineConfig
from .errors import ConfigError, DecodeError
from .pipeline import ScanPipeline
from .preprocessor import load_image
from .visualizer import ScanVisualizer


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Flatten photographed document pages into a scanned PDF',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # Two photos into a two page PDF
  python -m paper_scanner -i page1.jpg page2.jpg -o scan.pdf

  # One photo into a flattened image, no enhancement
  python -m paper_scanner -i photo.jpg -o flat.png --raw

  # Save detection drawings next to the output
  python -m paper_scanner -i photo.jpg -o scan.pdf --debug --debug-dir debug/

Settings not given on the command line are read from SCANNER_* environment
variables (a .env file is loaded too).
        """
    )

    parser.add_argument(
        '-i', '--input',
        nargs='+',
        required=True,
        help='Input images, in page order'
    )

    parser.add_argument(
        '-o', '--output',
        required=True,
        help='Output file (.pdf for a document, image extension with --raw)'
    )

    parser.add_argument(
        '--model',
        default=None,
        help='Path to YOLO page detection weights (optional)'
    )

    parser.add_argument(
        '--method',
        choices=['edges', 'threshold'],
        default=None,
        help='Boundary map strategy'
    )

    parser.add_argument(
        '--raw',
        action='store_true',
        help='Write the rectified image of a single input without enhancement'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Print pipeline decisions'
    )

    parser.add_argument(
        '--debug-dir',
        default=None,
        help='Directory for detection visualizations'
    )

    return parser.parse_args(argv)


def build_config(args) -> PipelineConfig:
    config = PipelineConfig.from_env()
    changes = {}
    if args.model:
        changes['model_path'] = args.model
    if args.method:
        changes['boundary_method'] = args.method
    if args.debug:
        changes['debug'] = True
    return config.with_overrides(**changes) if changes else config


def main(argv=None):
    """Main CLI function"""
    args = parse_args(argv)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"❌ Error: invalid configuration: {e}")
        return 1

    if args.raw and len(args.input) != 1:
        print("❌ Error: --raw needs exactly one input image")
        return 1

    images = []
    names = []
    for path in args.input:
        try:
            images.append(load_image(path))
            names.append(Path(path).name)
        except DecodeError as e:
            print(f"⚠️  Skipping {path}: {e}")

    if not images:
        print("❌ Error: no readable input images")
        return 1

    with ScanPipeline.from_config(config) as pipeline:
        print(f"📄 Processing {len(images)} image(s)...")
        results = pipeline.rectify_many(images)

    for name, result in zip(names, results):
        status = "✅" if result.rectified else "⚠️ "
        print(f"  {status} {name}: {result.method}")

    if args.debug_dir:
        debug_dir = Path(args.debug_dir)
        debug_dir.mkdir(parents=True, exist_ok=True)
        visualizer = ScanVisualizer()
        for name, image, result in zip(names, images, results):
            drawn = visualizer.visualize_result(image, result, config.fallback_crop_fraction)
            cv2.imwrite(str(debug_dir / f"detected_{Path(name).stem}.png"), drawn)

    output = Path(args.output)
    if args.raw:
        if not cv2.imwrite(str(output), results[0].image):
            print(f"❌ Error: failed to write {output}")
            return 1
    else:
        enhancer = PageEnhancer(config.destination_size)
        pages = [enhancer.enhance_to_jpeg(result.image) for result in results]
        output.write_bytes(DocumentAssembler(config.destination_size).assemble(pages))

    print(f"✅ Done: {output}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
