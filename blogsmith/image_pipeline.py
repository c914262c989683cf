"""Image Pipeline — policy gate, prompt styling and remote image generation."""

from __future__ import annotations

import base64
import binascii
import io
import logging
import os
import time
import uuid
from dataclasses import dataclass, field

import requests
from PIL import Image, UnidentifiedImageError

from blogsmith.completion_client import ConfigError, ProviderError, ProviderTimeoutError
from blogsmith.config import Settings

log = logging.getLogger(__name__)

MIN_PROMPT_LENGTH = 3

# Case-insensitive substring match, not word match: "harm" also hits "harmony"
DENYLIST = ("nsfw", "adult", "explicit", "violence", "harm")

STYLE_SUFFIXES = {
    "realistic": ", photorealistic, ultra-detailed, professional photography, realistic lighting",
    "illustration": ", digital illustration, clean vector art, smooth shading, artistic style",
    "minimal": ", minimal design, flat style, clean composition, simple and elegant",
    "futuristic": ", futuristic, sci-fi, neon lighting, high-tech cyberpunk, advanced technology",
}
QUALITY_SUFFIX = ", high quality, studio lighting, no text, no watermark"

VALID_STYLES = tuple(STYLE_SUFFIXES)


@dataclass(frozen=True)
class IntentDecision:
    allow: bool
    reason: str | None = None


@dataclass(frozen=True)
class GeneratedImage:
    url: str


@dataclass
class ImageGenerationResult:
    success: bool
    images: list[GeneratedImage] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        data = {"success": self.success, "images": [{"url": img.url} for img in self.images]}
        if self.error:
            data["error"] = self.error
        return data


def classify_intent(prompt: str) -> IntentDecision:
    """Decide whether an image prompt may be sent to the provider."""
    normalized = prompt.strip().lower()
    if len(normalized) < MIN_PROMPT_LENGTH:
        return IntentDecision(False, f"Prompt too short - minimum {MIN_PROMPT_LENGTH} characters required")
    if any(term in normalized for term in DENYLIST):
        return IntentDecision(False, "Content policy violation - inappropriate content detected")
    return IntentDecision(True)


def compose_prompt(base: str, style: str | None = None) -> str:
    """Append the style suffix (if any) and the fixed quality suffix.

    Not idempotent: composing an already composed prompt stacks the suffixes.
    """
    return base.strip() + STYLE_SUFFIXES.get(style or "", "") + QUALITY_SUFFIX


class OpenRouterImageService:
    """Plain HTTP client for the images/generations endpoint."""

    STATUS_MESSAGES = {
        401: "Authentication failed - invalid OpenRouter API key",
        403: "Access forbidden - check your OpenRouter account permissions",
        429: "Rate limit exceeded - too many requests to OpenRouter",
        500: "OpenRouter internal server error - please try again later",
        502: "OpenRouter service temporarily unavailable - please try again later",
        503: "OpenRouter service temporarily unavailable - please try again later",
        504: "OpenRouter service temporarily unavailable - please try again later",
    }

    def __init__(self, api_key, base_url="https://openrouter.ai/api/v1",
                 model="stabilityai/stable-diffusion-xl", timeout=60,
                 referer="http://localhost:5173", app_title="AI Blog Generator"):
        if not api_key or not api_key.strip():
            raise ConfigError("OpenRouter API key is required")
        self.model = model
        self.timeout = timeout
        self.endpoint = f"{base_url.rstrip('/')}/images/generations"
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": referer,
            "X-Title": app_title,
        }

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenRouterImageService":
        img = settings.images
        return cls(
            api_key=img.api_key,
            base_url=img.base_url,
            model=img.model,
            timeout=img.timeout_seconds,
            referer=settings.referer,
            app_title=settings.app_title,
        )

    def generate(self, prompt: str, size: str = "1024x1024") -> str:
        """Return an image URL, or a ``data:`` URI when the provider sends base64."""
        payload = {"model": self.model, "prompt": prompt, "size": size}
        log.info(f"Generating image with prompt: {prompt[:50]}...", extra={"model": self.model})

        start = time.time()
        try:
            resp = requests.post(self.endpoint, headers=self.headers, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise ProviderTimeoutError("Request timeout - OpenRouter took too long to respond")
        except requests.exceptions.RequestException as e:
            raise ProviderError(None, f"Image generation failed due to network error: {e}")

        log.info(
            f"POST {self.endpoint} -> {resp.status_code}",
            extra={
                "endpoint": self.endpoint,
                "method": "POST",
                "status_code": resp.status_code,
                "response_time": round(time.time() - start, 3),
            },
        )

        if not 200 <= resp.status_code < 300:
            raise ProviderError(resp.status_code, self._status_message(resp))

        try:
            data = resp.json()
        except ValueError:
            raise ProviderError(resp.status_code, "No valid image data in OpenRouter response")

        images = data.get("data") if isinstance(data, dict) else None
        if isinstance(images, list) and images:
            image = images[0] or {}
            if image.get("url"):
                return image["url"]
            if image.get("b64_json"):
                return f"data:image/png;base64,{image['b64_json']}"

        raise ProviderError(resp.status_code, "No valid image data in OpenRouter response")

    def _status_message(self, resp) -> str:
        status = resp.status_code
        detail = ""
        try:
            body = resp.json()
            if isinstance(body, dict):
                err = body.get("error")
                detail = (err.get("message") if isinstance(err, dict) else err) or body.get("message") or body.get("detail") or ""
        except ValueError:
            pass

        if status == 400:
            return f"Invalid request: {detail or 'Check prompt and parameters'}"
        if status == 405:
            return f"Method not allowed: {detail or 'OpenRouter does not support this method for images'}"
        if status in self.STATUS_MESSAGES:
            return self.STATUS_MESSAGES[status]
        return f"OpenRouter API error ({status}): {detail or resp.reason or 'Unknown error'}"


class ImageGenerator:
    """Gate -> compose -> generate. Always returns an ImageGenerationResult."""

    def __init__(self, settings: Settings | None = None, service: OpenRouterImageService | None = None):
        self.settings = settings or Settings()
        self._service = service

    @property
    def service(self) -> OpenRouterImageService:
        if self._service is None:
            self._service = OpenRouterImageService.from_settings(self.settings)
        return self._service

    def generate_image(self, prompt: str, style: str | None = None, size: str | None = None) -> ImageGenerationResult:
        intent = classify_intent(prompt)
        if not intent.allow:
            log.info(f"Image prompt rejected: {intent.reason}")
            return ImageGenerationResult(False, [], intent.reason or "Image generation not allowed")

        if style and style not in STYLE_SUFFIXES:
            return ImageGenerationResult(False, [], f"Invalid style. Must be one of: {', '.join(VALID_STYLES)}")

        composed = compose_prompt(prompt, style)
        try:
            url = self.service.generate(composed, size or self.settings.images.default_size)
        except (ProviderError, ConfigError) as e:
            log.error(f"Image generation failed: {e}")
            return ImageGenerationResult(False, [], str(e) or "Image generation failed")
        except Exception as e:
            log.exception(f"Unexpected image generation error: {e}")
            return ImageGenerationResult(False, [], str(e) or "Image generation failed")

        log.info("Image generated successfully")
        return ImageGenerationResult(True, [GeneratedImage(url=url)])


def save_image(source: str, output_dir: str = "output/images", timeout: float = 60) -> str:
    """Store a generated image (URL or data URI) locally as WebP and return its path."""
    if source.startswith("data:"):
        try:
            encoded = source.split(",", 1)[1]
            raw = base64.b64decode(encoded, validate=True)
        except (IndexError, binascii.Error) as e:
            raise ValueError(f"Malformed image data URI: {e}")
    else:
        resp = requests.get(source, timeout=timeout)
        resp.raise_for_status()
        raw = resp.content

    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
    except UnidentifiedImageError as e:
        raise ValueError(f"Downloaded data is not an image: {e}")

    os.makedirs(output_dir, exist_ok=True)
    output_path = os.path.join(output_dir, f"image-{uuid.uuid4().hex[:8]}.webp")
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    img.save(output_path, "WEBP", quality=85, method=6)
    log.info(f"Saved image {output_path} ({img.width}x{img.height})")
    return output_path
