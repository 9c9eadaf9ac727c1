# pitchfund/vectorize.py
import logging
import os
import re
import uuid

import requests
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from pitchfund import config

logger = logging.getLogger(__name__)

router = APIRouter()

VECTORIZER_URL = "https://vectorizer.ai/api/v1/vectorize"

_MULTILINE_ATTR_RE = re.compile(r'(\w+)="([^"]*[\r\n][^"]*)"')


def clean_svg(svg: str) -> str:
    """
    Flatten vectorizer output into a single-color SVG that CSS can restyle.
    Attribute values broken across lines are rejoined first.
    """
    svg = _MULTILINE_ATTR_RE.sub(
        lambda m: f'{m.group(1)}="{" ".join(m.group(2).split())}"', svg
    )
    svg = re.sub(r"\s+", " ", svg)

    svg = re.sub(r'fill="[^"]*"', 'fill="#000000"', svg)
    svg = re.sub(r'stroke="[^"]*"', 'stroke="#000000"', svg)
    svg = svg.replace("currentColor", "#000000")

    return re.sub(r"<svg([^>]*)>", r'<svg\1 class="logo-svg" style="color: #000000;">', svg, count=1)


def logo_filename(image_url: str) -> str:
    stem = image_url.rstrip("/").split("/")[-1].split("?")[0]
    stem = re.sub(r"\.[^.]+$", "", stem) or "logo"
    stem = re.sub(r"[^A-Za-z0-9_-]", "_", stem)
    return f"{stem}_vectorized-{uuid.uuid4().hex[:8]}.svg"


def vectorize(image: bytes) -> requests.Response:
    return requests.post(
        VECTORIZER_URL,
        auth=(config.VECTORIZER_AI_USER_ID, config.VECTORIZER_AI_API_TOKEN),
        files={"image": ("logo.png", image, "image/png")},
        timeout=config.REQUEST_TIMEOUT * 4,
    )


def _error(status: int, message: str, image_url: str = None) -> JSONResponse:
    body = {"error": message}
    if image_url:
        body["originalUrl"] = image_url
    return JSONResponse(status_code=status, content=body)


@router.post("/vectorize-logo")
def vectorize_logo(body: dict):
    sid = uuid.uuid4().hex[:8]
    image_url = body.get("imageUrl")
    if not image_url:
        return _error(400, "Image URL is required")

    if not config.ENABLE_IMAGE_VECTORIZATION:
        logger.info(f"[{sid}] vectorization disabled, skipping {image_url}")
        return _error(400, "Vectorization disabled", image_url)

    try:
        image = requests.get(image_url, timeout=config.REQUEST_TIMEOUT)
        image.raise_for_status()
        logger.info(f"[{sid}] fetched {len(image.content)} bytes from {image_url}")

        response = vectorize(image.content)
        if not response.ok:
            logger.error(f"[{sid}] Vectorizer.ai error {response.status_code}: {response.text}")
            return _error(400, f"Vectorization failed: {response.status_code}", image_url)

        svg = clean_svg(response.content.decode("utf-8"))

        os.makedirs(config.LOGO_OUTPUT_DIR, exist_ok=True)
        path = os.path.join(config.LOGO_OUTPUT_DIR, logo_filename(image_url))
        with open(path, "w", encoding="utf-8") as f:
            f.write(svg)
    except Exception as e:
        logger.exception(f"[{sid}] vectorization failed")
        return _error(500, f"Vectorization failed: {e}")

    logger.info(f"[{sid}] saved {len(svg)} byte SVG to {path}")
    return {
        "success": True,
        "originalUrl": image_url,
        "svgPath": path,
        "originalSize": len(image.content),
        "svgSize": len(svg),
        "conversionRatio": f"{(1 - len(svg) / len(image.content)) * 100:.1f}" if image.content else "0.0",
    }
