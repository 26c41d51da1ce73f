#!/usr/bin/env python3
"""
Batch crop a directory of outfit photos, skipping the top of each frame where
faces usually are. Writes cropped_<name> JPEGs into the output directory.
"""
import argparse
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Tuple

from PIL import Image

from piececut.constants import IMAGE_EXTENSIONS, JPEG_QUALITY
from piececut.cropping import avoid_face_box

logger = logging.getLogger("batch_crop")


def iter_images(root: Path) -> Iterable[Path]:
    for path in sorted(root.iterdir()):
        if path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS and "cropped" not in path.name:
            yield path


def crop_file(image_path: Path, output_dir: Path, overwrite: bool) -> Tuple[str, Path]:
    out_path = output_dir / f"cropped_{image_path.stem}.jpg"
    if out_path.exists() and not overwrite:
        return "skipped", out_path

    with Image.open(image_path) as img:
        rect = avoid_face_box(img.width, img.height)
        cropped = img.crop((rect.x, rect.y, rect.right, rect.bottom)).convert("RGB")
    cropped.save(out_path, "JPEG", quality=JPEG_QUALITY)
    return "processed", out_path


def main():
    parser = argparse.ArgumentParser(description="Batch crop outfit photos below the face area")
    parser.add_argument("--input-dir", type=Path, default=Path("public"), help="Directory with source images")
    parser.add_argument("--output-dir", type=Path, default=None, help="Output directory (default: <input-dir>/cropped)")
    parser.add_argument("--workers", type=int, default=4, help="Parallel worker threads")
    parser.add_argument("--overwrite", action="store_true", help="Regenerate outputs that already exist")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    input_dir = args.input_dir
    output_dir = args.output_dir or input_dir / "cropped"
    if not input_dir.is_dir():
        logger.error(f"Input directory does not exist: {input_dir}")
        raise SystemExit(1)
    output_dir.mkdir(parents=True, exist_ok=True)

    images = list(iter_images(input_dir))
    logger.info(f"Found {len(images)} images to process")

    processed = 0
    skipped = 0
    failed = 0
    with ThreadPoolExecutor(max_workers=max(1, args.workers)) as executor:
        future_to_path = {
            executor.submit(crop_file, img, output_dir, args.overwrite): img
            for img in images
        }
        for future in as_completed(future_to_path):
            img_path = future_to_path[future]
            try:
                status, out_path = future.result()
            except Exception as e:
                failed += 1
                logger.warning(f"Error cropping {img_path.name}: {e}")
                continue
            if status == "skipped":
                skipped += 1
            else:
                processed += 1
                logger.info(f"Cropped: {img_path.name} -> {out_path.name}")

    logger.info(
        f"Done | total {len(images)} | cropped {processed} | skipped {skipped} | failed {failed}"
    )
    logger.info(f"Cropped images saved to: {output_dir}")


if __name__ == "__main__":
    main()
