"""
HTTP API service for PieceCut garment extraction.
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile

from .config import load_options, resolve_max_workers
from .descriptors import parse_vision_response
from .errors import DecodeFailure
from .matting import encode_image, remove_background
from .pipeline import decode_image, extract, pieces_to_payload
from .schemas import BackgroundRemovalResponse, ExtractionResponse, HealthResponse

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="PieceCut", version="0.1.0")

options = load_options()

_max_workers = resolve_max_workers(options.max_workers)
executor = ThreadPoolExecutor(max_workers=_max_workers)

logger.info(f"Thread pool initialized with {_max_workers} workers")


async def read_upload(file: UploadFile) -> bytes:
    if not file.content_type or not file.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Image data is required")
    return data


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown."""
    executor.shutdown(wait=True)
    logger.info("Thread pool shutdown complete")


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "max_workers": _max_workers,
        "options": asdict(options),
    }


@app.post("/extract-pieces", response_model=ExtractionResponse)
async def extract_pieces(
    file: UploadFile = File(...),
    pieces: str = Form("[]"),
    padding_ratio: Optional[float] = None,
    threshold: Optional[float] = None,
):
    """
    Cut every described piece out of the uploaded photo.

    ``pieces`` is the vision model's output, either ``{"outfitPieces": [...]}``
    or a bare list. Results come back in the same order.
    """
    image_data = await read_upload(file)
    try:
        request_options = options.with_overrides(padding_ratio=padding_ratio, matte_threshold=threshold)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    descriptors = parse_vision_response(pieces)
    loop = asyncio.get_event_loop()
    try:
        image = await loop.run_in_executor(executor, decode_image, image_data)
    except DecodeFailure as e:
        logger.warning(f"Rejected upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    try:
        # the call waits on the default loop executor while its pieces fan out on the shared pool
        results = await loop.run_in_executor(
            None,
            lambda: extract(image, descriptors, request_options, executor=executor),
        )
        payload = pieces_to_payload(results)
    except Exception as e:
        logger.error(f"Error extracting pieces: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Processing failed: {str(e)}")

    return {
        "success": True,
        "count": len(payload),
        "width": image.width,
        "height": image.height,
        "pieces": payload,
    }


@app.post("/remove-background", response_model=BackgroundRemovalResponse)
async def remove_background_endpoint(
    file: UploadFile = File(...),
    threshold: Optional[float] = None,
):
    """
    Remove a flat backdrop from the whole image.

    Returns base64-encoded PNG image with transparent background.
    """
    image_data = await read_upload(file)
    try:
        request_options = options.with_overrides(matte_threshold=threshold)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    loop = asyncio.get_event_loop()
    try:
        image = await loop.run_in_executor(executor, decode_image, image_data)
    except DecodeFailure as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        cutout = await loop.run_in_executor(
            executor,
            lambda: remove_background(image, request_options.matte_threshold, request_options.light_cutoff),
        )
        encoded = encode_image(cutout, "png")
    except Exception as e:
        logger.error(f"Error removing background: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Background removal failed: {str(e)}")

    return {"success": True, "image": encoded, "format": "png"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
