# marketstore/images.py
import logging
from typing import Optional

import httpx

from . import config
from .errors import UpstreamFailure, UploadTimeout

log = logging.getLogger(__name__)


async def upload_image(
    filename: str,
    content: bytes,
    content_type: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Push one image to the configured image host and return its public URL.

    The call is attempted once and bounded by IMAGE_UPLOAD_TIMEOUT; a timeout
    raises UploadTimeout, any other failure raises UpstreamFailure.
    """
    if not config.IMAGE_HOST_URL:
        raise UpstreamFailure("Image host is not configured", field="productImg")

    files = {"file": (filename, content, content_type or "application/octet-stream")}
    data = {"folder": config.IMAGE_HOST_FOLDER}
    headers = {}
    if config.IMAGE_HOST_API_KEY:
        headers["Authorization"] = f"Bearer {config.IMAGE_HOST_API_KEY}"

    try:
        async with httpx.AsyncClient(timeout=config.IMAGE_UPLOAD_TIMEOUT, transport=transport) as client:
            r = await client.post(config.IMAGE_HOST_URL, files=files, data=data, headers=headers)
            r.raise_for_status()
            body = r.json()
    except httpx.TimeoutException as e:
        log.error("image upload of %s timed out after %ss", filename, config.IMAGE_UPLOAD_TIMEOUT)
        raise UploadTimeout(f"Image upload timed out after {config.IMAGE_UPLOAD_TIMEOUT}s", field="productImg") from e
    except httpx.HTTPStatusError as e:
        raise UpstreamFailure(f"Image host returned HTTP {e.response.status_code}", field="productImg") from e
    except (httpx.HTTPError, ValueError) as e:
        raise UpstreamFailure(f"Image upload failed: {e}", field="productImg") from e

    url = (body.get("secure_url") or body.get("url")) if isinstance(body, dict) else None
    if not url:
        raise UpstreamFailure("Image host response did not include a URL", field="productImg")
    log.info("uploaded image %s -> %s", filename, url)
    return url
