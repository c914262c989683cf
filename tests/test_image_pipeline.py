"""Tests for the image policy gate, prompt composer, image service and saver."""

import base64
import io
import json
from unittest.mock import MagicMock

import pytest
import requests
import responses
from PIL import Image

from blogsmith.completion_client import ConfigError, ProviderError, ProviderTimeoutError
from blogsmith.config import ImageSettings, Settings
from blogsmith.image_pipeline import (
    QUALITY_SUFFIX,
    STYLE_SUFFIXES,
    ImageGenerator,
    OpenRouterImageService,
    classify_intent,
    compose_prompt,
    save_image,
)

BASE_URL = "https://router.test/api/v1"
IMAGES_URL = f"{BASE_URL}/images/generations"


def _png_bytes(size=(40, 30), color=(200, 120, 40)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, "PNG")
    return buf.getvalue()


def _service():
    return OpenRouterImageService(api_key="test-key", base_url=BASE_URL, timeout=5)


class TestClassifyIntent:
    def test_too_short(self):
        decision = classify_intent("hi")
        assert not decision.allow
        assert decision.reason == "Prompt too short - minimum 3 characters required"

    def test_length_measured_after_trim(self):
        assert not classify_intent("   ab   ").allow
        assert classify_intent("  abc ").allow

    def test_denylist_case_insensitive(self):
        decision = classify_intent("An EXPLICIT scene")
        assert not decision.allow
        assert decision.reason == "Content policy violation - inappropriate content detected"

    def test_substring_false_positive(self):
        # "harm" matches inside "harmony"
        assert not classify_intent("a cat in harmony with nature").allow

    def test_benign_prompt_allowed(self):
        decision = classify_intent("A tidy compost bin in a sunny backyard garden")
        assert decision.allow
        assert decision.reason is None


class TestComposePrompt:
    def test_style_then_quality_suffix(self):
        assert compose_prompt("  compost bin ", "minimal") == (
            "compost bin" + STYLE_SUFFIXES["minimal"] + QUALITY_SUFFIX
        )

    def test_no_style(self):
        assert compose_prompt("compost bin") == "compost bin" + QUALITY_SUFFIX

    def test_unknown_style_adds_only_quality(self):
        assert compose_prompt("compost bin", "baroque") == "compost bin" + QUALITY_SUFFIX

    def test_composing_twice_stacks_suffixes(self):
        once = compose_prompt("compost bin", "minimal")
        twice = compose_prompt(once, "minimal")
        assert twice.count(QUALITY_SUFFIX) == 2
        assert twice.count(STYLE_SUFFIXES["minimal"]) == 2


class TestOpenRouterImageService:
    def test_requires_api_key(self):
        with pytest.raises(ConfigError, match="OpenRouter API key is required"):
            OpenRouterImageService(api_key="  ")

    @responses.activate
    def test_returns_url(self):
        responses.add(responses.POST, IMAGES_URL, json={"data": [{"url": "https://cdn.test/img.png"}]}, status=200)
        assert _service().generate("a compost bin", "512x512") == "https://cdn.test/img.png"

        request = responses.calls[0].request
        assert json.loads(request.body) == {
            "model": "stabilityai/stable-diffusion-xl", "prompt": "a compost bin", "size": "512x512",
        }
        assert request.headers["Authorization"] == "Bearer test-key"
        assert request.headers["X-Title"] == "AI Blog Generator"

    @responses.activate
    def test_base64_becomes_data_uri(self):
        responses.add(responses.POST, IMAGES_URL, json={"data": [{"b64_json": "QUJD"}]}, status=200)
        assert _service().generate("a compost bin") == "data:image/png;base64,QUJD"

    @responses.activate
    def test_empty_data(self):
        responses.add(responses.POST, IMAGES_URL, json={"data": []}, status=200)
        with pytest.raises(ProviderError, match="No valid image data"):
            _service().generate("a compost bin")

    @pytest.mark.parametrize("status,body,message", [
        (400, {"error": {"message": "bad size"}}, "Invalid request: bad size"),
        (400, {}, "Invalid request: Check prompt and parameters"),
        (401, {}, "Authentication failed - invalid OpenRouter API key"),
        (403, {}, "Access forbidden - check your OpenRouter account permissions"),
        (405, {}, "Method not allowed: OpenRouter does not support this method for images"),
        (429, {}, "Rate limit exceeded - too many requests to OpenRouter"),
        (500, {}, "OpenRouter internal server error - please try again later"),
        (503, {}, "OpenRouter service temporarily unavailable - please try again later"),
        (418, {"message": "teapot"}, "OpenRouter API error (418): teapot"),
    ])
    @responses.activate
    def test_status_messages(self, status, body, message):
        responses.add(responses.POST, IMAGES_URL, json=body, status=status)
        with pytest.raises(ProviderError) as exc:
            _service().generate("a compost bin")
        assert exc.value.status_code == status
        assert str(exc.value) == message

    @responses.activate
    def test_timeout(self):
        responses.add(responses.POST, IMAGES_URL, body=requests.exceptions.ConnectTimeout("slow"))
        with pytest.raises(ProviderTimeoutError, match="took too long"):
            _service().generate("a compost bin")


class TestImageGenerator:
    def test_rejected_prompt_never_reaches_service(self):
        service = MagicMock()
        result = ImageGenerator(service=service).generate_image("hi")
        assert not result.success
        assert result.images == []
        assert "too short" in result.error
        service.generate.assert_not_called()

    def test_invalid_style(self):
        service = MagicMock()
        result = ImageGenerator(service=service).generate_image("a compost bin", style="baroque")
        assert not result.success
        assert result.error == "Invalid style. Must be one of: realistic, illustration, minimal, futuristic"
        service.generate.assert_not_called()

    def test_success(self):
        service = MagicMock()
        service.generate.return_value = "https://cdn.test/img.png"
        settings = Settings(images=ImageSettings(default_size="768x768"))
        result = ImageGenerator(settings, service=service).generate_image("a compost bin", style="realistic")

        assert result.to_dict() == {"success": True, "images": [{"url": "https://cdn.test/img.png"}]}
        service.generate.assert_called_once_with(compose_prompt("a compost bin", "realistic"), "768x768")

    def test_explicit_size_wins(self):
        service = MagicMock()
        service.generate.return_value = "https://cdn.test/img.png"
        ImageGenerator(service=service).generate_image("a compost bin", size="512x512")
        assert service.generate.call_args.args[1] == "512x512"

    @pytest.mark.parametrize("error,message", [
        (ProviderError(429, "Rate limit exceeded - too many requests to OpenRouter"),
         "Rate limit exceeded - too many requests to OpenRouter"),
        (ProviderTimeoutError("Request timeout - OpenRouter took too long to respond"),
         "Request timeout - OpenRouter took too long to respond"),
        (RuntimeError("boom"), "boom"),
    ])
    def test_failures_become_results(self, error, message):
        service = MagicMock()
        service.generate.side_effect = error
        result = ImageGenerator(service=service).generate_image("a compost bin")
        assert not result.success
        assert result.error == message
        assert result.to_dict()["error"] == message

    def test_missing_key_becomes_result(self):
        result = ImageGenerator(Settings()).generate_image("a compost bin")
        assert not result.success
        assert result.error == "OpenRouter API key is required"


class TestSaveImage:
    def test_saves_data_uri_as_webp(self, tmp_path):
        uri = "data:image/png;base64," + base64.b64encode(_png_bytes()).decode()
        path = save_image(uri, str(tmp_path))

        assert path.endswith(".webp")
        with Image.open(path) as img:
            assert img.format == "WEBP"
            assert img.size == (40, 30)

    @responses.activate
    def test_downloads_url(self, tmp_path):
        responses.add(responses.GET, "https://cdn.test/img.png", body=_png_bytes(), status=200,
                      content_type="image/png")
        path = save_image("https://cdn.test/img.png", str(tmp_path / "nested"))
        assert (tmp_path / "nested").is_dir()
        with Image.open(path) as img:
            assert img.format == "WEBP"

    def test_malformed_data_uri(self, tmp_path):
        with pytest.raises(ValueError, match="Malformed"):
            save_image("data:image/png;base64,@@not-base64@@", str(tmp_path))

    def test_non_image_bytes(self, tmp_path):
        uri = "data:image/png;base64," + base64.b64encode(b"definitely not an image").decode()
        with pytest.raises(ValueError, match="not an image"):
            save_image(uri, str(tmp_path))

    @responses.activate
    def test_download_http_error(self, tmp_path):
        responses.add(responses.GET, "https://cdn.test/missing.png", status=404)
        with pytest.raises(requests.exceptions.HTTPError):
            save_image("https://cdn.test/missing.png", str(tmp_path))
