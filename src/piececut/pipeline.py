import io
import logging
import threading
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)
logging.getLogger("PIL").setLevel(logging.WARNING)

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .bbox import normalize_box
from .config import ExtractionOptions, resolve_max_workers
from .constants import FALLBACK_FORMAT
from .cropping import crop, cut_region
from .errors import CropError, DecodeFailure, EncodeFailure, ExtractionCancelled, MattingUnsupported
from .matting import encode_image, matte, supports_alpha
from .models import BoundingBoxPercent, PieceDescriptor, PieceStatus, PixelRect, ProcessedPiece, SourceImage


def decode_image(data: bytes) -> SourceImage:
    """
    Decode image bytes into an RGBA SourceImage, honouring EXIF orientation.

    Raises:
        DecodeFailure: if the bytes are empty or not a readable image
    """
    if not data:
        raise DecodeFailure("Image data is empty")
    try:
        with Image.open(io.BytesIO(data)) as image_pil:
            image_pil.load()
            image_pil = ImageOps.exif_transpose(image_pil)
            rgba = np.array(image_pil.convert("RGBA"))
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeFailure(f"Cannot decode image: {e}") from e
    return SourceImage(rgba)


def load_image(path: str) -> SourceImage:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise DecodeFailure(f"Cannot read image: {path}: {e}") from e
    return decode_image(data)


def _matte_stage(region: np.ndarray, options: ExtractionOptions) -> np.ndarray:
    if not supports_alpha(options.output_format):
        raise MattingUnsupported(f"Output format {options.output_format} cannot carry alpha")
    return matte(region, threshold=options.matte_threshold, light_cutoff=options.light_cutoff)


def process_piece(
    image: SourceImage,
    descriptor: PieceDescriptor,
    options: ExtractionOptions,
    index: int = 0,
    cancel_event: Optional[threading.Event] = None,
) -> ProcessedPiece:
    """
    Normalize -> crop -> matte -> encode a single piece.

    Never raises for per-piece problems: a piece without a location or on an
    empty image comes back FAILED. A piece whose matting or alpha encoding is
    unsupported comes back CROPPED_UNMATTED with the raw crop, encoded as JPEG
    when the requested format rejected it.

    Raises:
        ExtractionCancelled: if ``cancel_event`` is set before the piece starts
    """
    if cancel_event is not None and cancel_event.is_set():
        raise ExtractionCancelled(f"Extraction cancelled before piece {index}")

    label = descriptor.name or descriptor.type or f"#{index}"
    if descriptor.location is None:
        logger.info(f"[STEP] piece {index} ({label}): no location, skipping geometry")
        return ProcessedPiece(descriptor=descriptor, status=PieceStatus.FAILED, error="missing location")

    box = normalize_box(
        descriptor.location,
        min_size=options.min_box_percent,
        default_size=options.default_box_percent,
    )
    try:
        rect = crop(image, box, padding_ratio=options.padding_ratio, min_pixels=options.min_crop_pixels)
    except CropError as e:
        logger.warning(f"[STEP] piece {index} ({label}): crop failed: {e}")
        return ProcessedPiece(descriptor=descriptor, status=PieceStatus.FAILED, box=box, error=str(e))

    region = cut_region(image, rect)
    try:
        cutout = _matte_stage(region, options)
        encoded = encode_image(cutout, options.output_format)
    except MattingUnsupported as e:
        logger.warning(f"[STEP] piece {index} ({label}): matting skipped: {e}")
        return _unmatted_piece(descriptor, box, rect, region, options, str(e), label)

    return ProcessedPiece(
        descriptor=descriptor,
        status=PieceStatus.MATTED,
        box=box,
        pixel_rect=rect,
        image=cutout,
        encoded=encoded,
        format=options.output_format,
    )


def _unmatted_piece(
    descriptor: PieceDescriptor,
    box: BoundingBoxPercent,
    rect: PixelRect,
    region: np.ndarray,
    options: ExtractionOptions,
    reason: str,
    label: str,
) -> ProcessedPiece:
    """Encode the raw crop, in JPEG when the requested alpha encoder rejects it."""
    fmt = options.output_format
    try:
        try:
            encoded = encode_image(region, fmt)
        except MattingUnsupported:
            fmt = FALLBACK_FORMAT
            encoded = encode_image(region, fmt)
    except EncodeFailure as e:
        logger.warning(f"[STEP] piece {label}: raw crop could not be encoded: {e}")
        return ProcessedPiece(
            descriptor=descriptor,
            status=PieceStatus.FAILED,
            box=box,
            pixel_rect=rect,
            error=f"{reason}; {e}",
        )

    return ProcessedPiece(
        descriptor=descriptor,
        status=PieceStatus.CROPPED_UNMATTED,
        box=box,
        pixel_rect=rect,
        image=region,
        encoded=encoded,
        format=fmt,
        error=reason,
    )


def extract(
    image: SourceImage,
    descriptors: Sequence[PieceDescriptor],
    options: Optional[ExtractionOptions] = None,
    executor: Optional[Executor] = None,
    cancel_event: Optional[threading.Event] = None,
) -> List[ProcessedPiece]:
    """
    Process every descriptor of one source image.

    Pieces run concurrently on ``executor`` (or a private thread pool) and are
    returned in input order, one result per descriptor. An empty descriptor
    list gives an empty result.

    Args:
        image: Decoded source image, shared read-only by all piece tasks
        descriptors: Pieces reported by the vision model
        options: Extraction options, defaults when None
        executor: Optional executor to run piece tasks on
        cancel_event: When set, pieces that have not started raise ExtractionCancelled

    Returns:
        List of ProcessedPiece aligned with ``descriptors``
    """
    options = options or ExtractionOptions()
    if not descriptors:
        logger.info("No pieces to extract")
        return []

    start_time = time.time()
    indices = range(len(descriptors))

    def run(idx: int) -> ProcessedPiece:
        return process_piece(image, descriptors[idx], options, index=idx, cancel_event=cancel_event)

    if executor is not None:
        pieces = list(executor.map(run, indices))
    else:
        workers = min(resolve_max_workers(options.max_workers), len(descriptors))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            pieces = list(pool.map(run, indices))

    matted = sum(1 for p in pieces if p.status is PieceStatus.MATTED)
    failed = sum(1 for p in pieces if p.status is PieceStatus.FAILED)
    total_time = time.time() - start_time
    logger.info(
        f"[PERF] Extracted {len(pieces)} pieces from {image.width}x{image.height} in {total_time:.2f}s "
        f"(matted: {matted}, unmatted: {len(pieces) - matted - failed}, failed: {failed})"
    )
    return pieces


def piece_to_payload(index: int, piece: ProcessedPiece) -> Dict[str, Any]:
    return {
        "index": index,
        "piece": piece.descriptor.metadata(),
        "location": piece.box.as_dict() if piece.box else None,
        "pixel_rect": piece.pixel_rect.as_dict() if piece.pixel_rect else None,
        "image": piece.encoded,
        "format": piece.format if piece.encoded is not None else None,
        "matted": piece.matted,
        "status": piece.status.value,
        "error": piece.error,
    }


def pieces_to_payload(pieces: Sequence[ProcessedPiece]) -> List[Dict[str, Any]]:
    """Render processed pieces for the display layer, images as base64."""
    return [piece_to_payload(idx, piece) for idx, piece in enumerate(pieces)]
