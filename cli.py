#!/usr/bin/env python3
import argparse
import base64
import json
import logging
import os
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from piececut.config import load_options
from piececut.constants import SUPPORTED_FORMATS
from piececut.descriptors import parse_vision_response
from piececut.errors import DecodeFailure
from piececut.matting import encode_image, remove_background
from piececut.pipeline import extract, load_image, pieces_to_payload

EXTENSIONS = {"png": "png", "webp": "webp", "jpeg": "jpg"}


def save_b64(img_b64: str, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "wb") as f:
        f.write(base64.b64decode(img_b64))


def main():
    parser = argparse.ArgumentParser(description='PieceCut CLI - cut outfit pieces out of a photo')
    parser.add_argument('image_path', type=str, help='Path to input image')
    parser.add_argument('--pieces', type=str, required=True,
                        help='JSON file with the vision model output ({"outfitPieces": [...]} or a list)')
    parser.add_argument('--output-dir', type=str, default='./output', help='Output directory')
    parser.add_argument('--padding-ratio', type=float, default=None, help='Padding added around each box')
    parser.add_argument('--threshold', type=float, default=None, help='Matting color distance threshold')
    parser.add_argument('--format', type=str, default=None, choices=list(SUPPORTED_FORMATS),
                        help='Output image format (jpeg disables matting)')
    parser.add_argument('--remove-bg', action='store_true', help='Also matte the whole image')

    args = parser.parse_args()

    if not os.path.exists(args.image_path):
        logger.error(f"Image not found: {args.image_path}")
        sys.exit(1)

    try:
        options = load_options().with_overrides(
            padding_ratio=args.padding_ratio,
            matte_threshold=args.threshold,
            output_format=args.format,
        )
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        sys.exit(1)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Output directory: {output_dir}")

    try:
        image = load_image(args.image_path)
    except DecodeFailure as e:
        logger.error(str(e))
        sys.exit(1)

    descriptors = parse_vision_response(Path(args.pieces).read_text(encoding="utf-8"))
    if not descriptors:
        logger.warning("No pieces described, nothing to cut (show the source image as-is)")

    logger.info(f"Processing image: {args.image_path} ({image.width}x{image.height})")
    results = extract(image, descriptors, options)
    payload = pieces_to_payload(results)

    for item in payload:
        if item["image"] is None:
            logger.warning(f"Piece {item['index']} ({item['piece'].get('name')}): no image ({item['error']})")
            continue
        output_path = output_dir / f"piece_{item['index']:02d}.{EXTENSIONS[item['format']]}"
        save_b64(item["image"], output_path)
        item["file"] = output_path.name
        item["image"] = None
        logger.info(f"Saved: {output_path} ({item['status']})")

    with open(output_dir / "pieces.json", "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    logger.info(f"Wrote {output_dir / 'pieces.json'}")

    if args.remove_bg:
        logger.info("Removing background from the whole image...")
        cutout = remove_background(image, options.matte_threshold, options.light_cutoff)
        output_path = output_dir / "background_removed.png"
        save_b64(encode_image(cutout, "png"), output_path)
        logger.info(f"Saved background removed image: {output_path}")


if __name__ == '__main__':
    main()
