from __future__ import annotations

import asyncio
import io
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from hicolor.codec.errors import HiColorError
from hicolor.codec.header import read_header
from hicolor.codec.types import DitherPolicy, FormatVariant, ImageMetadata
from hicolor.config import VERSION, settings
from hicolor.convert import decode_bytes, encode_image, quantize_image
from hicolor.images import load_image, save_image

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle handler."""
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    logger.info("HiColor codec service ready")

    yield

    logger.info("Shutting down")


app = FastAPI(
    title="HiColor",
    version=VERSION,
    lifespan=lifespan,
)

# CORS
origins = settings.cors_origins.split(",") if settings.cors_origins != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Concurrency control
_semaphore = asyncio.Semaphore(settings.max_concurrent_requests)

VALID_VARIANTS = {variant.value for variant in FormatVariant}
VALID_DITHER_MODES = {policy.value for policy in DitherPolicy}


def _invalid_parameter(message: str) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"error": "invalid_parameter", "message": message},
    )


def _codec_failure(exc: HiColorError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"error": exc.code, "message": str(exc)},
    )


def _parse_options(variant: str, dither: str) -> tuple[FormatVariant, DitherPolicy]:
    if variant not in VALID_VARIANTS:
        raise _invalid_parameter(f"variant must be one of {sorted(VALID_VARIANTS)}")
    if dither not in VALID_DITHER_MODES:
        raise _invalid_parameter(f"dither must be one of {sorted(VALID_DITHER_MODES)}")
    return FormatVariant(variant), DitherPolicy(dither)


async def _read_upload(upload: UploadFile) -> bytes:
    data = await upload.read()
    if len(data) > settings.max_upload_size:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "image_too_large",
                "message": f"Upload exceeds {settings.max_upload_size} bytes.",
            },
        )
    return data


def _load_upload(data: bytes):
    try:
        return load_image(io.BytesIO(data))
    except Exception:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "invalid_format",
                "message": "Could not decode image. Ensure it is a valid PNG, JPEG, or WebP.",
            },
        )


async def _run(func, *args):
    """Run codec work off the event loop, mapping codec errors to 400s."""
    try:
        async with _semaphore:
            start_time = time.time()
            result = await asyncio.get_event_loop().run_in_executor(None, lambda: func(*args))
            processing_ms = int((time.time() - start_time) * 1000)
    except HiColorError as e:
        raise _codec_failure(e)
    except ValueError as e:
        raise _invalid_parameter(str(e))
    except Exception as e:
        logger.error("Conversion failed: %s", e, exc_info=True)
        raise HTTPException(
            status_code=500,
            detail={
                "error": "conversion_failed",
                "message": f"Codec error: {str(e)}",
            },
        )
    return result, processing_ms


def _headers(meta: ImageMetadata, processing_ms: int) -> dict[str, str]:
    return {
        "X-HiColor-Variant": meta.variant.value,
        "X-HiColor-Width": str(meta.width),
        "X-HiColor-Height": str(meta.height),
        "X-HiColor-Processing-Ms": str(processing_ms),
    }


def _png_bytes(rgb, alpha=None) -> bytes:
    buffer = io.BytesIO()
    save_image(buffer, rgb, alpha)
    return buffer.getvalue()


@app.get("/api/health")
async def health():
    return {
        "status": "healthy",
        "codec": "hicolor",
        "version": VERSION,
    }


@app.post("/api/encode")
async def encode(
    image: UploadFile = File(...),
    variant: str = Form(settings.default_variant),
    dither: str = Form(settings.default_dither),
):
    fmt, policy = _parse_options(variant, dither)
    rgb, _alpha = _load_upload(await _read_upload(image))

    data, processing_ms = await _run(encode_image, rgb, fmt, policy)
    meta = ImageMetadata.for_image(fmt, rgb)

    return Response(
        content=data,
        media_type="application/octet-stream",
        headers=_headers(meta, processing_ms),
    )


@app.post("/api/decode")
async def decode(image: UploadFile = File(...)):
    data = await _read_upload(image)

    (meta, rgb), processing_ms = await _run(decode_bytes, data)

    return Response(
        content=_png_bytes(rgb),
        media_type="image/png",
        headers=_headers(meta, processing_ms),
    )


@app.post("/api/quantize")
async def quantize(
    image: UploadFile = File(...),
    variant: str = Form(settings.default_variant),
    dither: str = Form(settings.default_dither),
):
    fmt, policy = _parse_options(variant, dither)
    rgb, alpha = _load_upload(await _read_upload(image))

    quantized, processing_ms = await _run(quantize_image, rgb, fmt, policy)
    meta = ImageMetadata.for_image(fmt, rgb)

    return Response(
        content=_png_bytes(quantized, alpha),
        media_type="image/png",
        headers=_headers(meta, processing_ms),
    )


@app.post("/api/info")
async def info(image: UploadFile = File(...)):
    data = await _read_upload(image)

    meta, _ = await _run(read_header, io.BytesIO(data))

    return {
        "variant": meta.variant.value,
        "width": meta.width,
        "height": meta.height,
    }
