"""Tests for response parsing and request building."""
import base64

import pytest

from siterecap.client import APIClient, build_content, detect_media_type, parse_json
from siterecap.errors import ConfigurationError, ModelResponseError

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 16
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 "


class TestParseJson:

    def test_plain_object(self):
        assert parse_json('  {"space": "Kitchen"}\n') == {"space": "Kitchen"}

    def test_code_fence(self):
        text = '```json\n{"tasks": [], "space": ""}\n```'
        assert parse_json(text) == {"tasks": [], "space": ""}

    def test_trailing_prose_is_ignored(self):
        text = 'Here you go: {"caption": "a {braced} word", "n": 1} Hope that helps!'
        assert parse_json(text) == {"caption": "a {braced} word", "n": 1}

    def test_array_is_rejected(self):
        with pytest.raises(ModelResponseError):
            parse_json("[1, 2, 3]")

    def test_no_json_at_all(self):
        with pytest.raises(ModelResponseError):
            parse_json("I cannot analyze this image.")

    def test_truncated_object(self):
        with pytest.raises(ModelResponseError):
            parse_json('{"space": "Kitchen", "tasks": [')


class TestMediaType:

    @pytest.mark.parametrize("data,expected", [
        (PNG, "image/png"),
        (JPEG, "image/jpeg"),
        (b"GIF89a....", "image/gif"),
        (WEBP, "image/webp"),
        (b"not an image", "image/jpeg"),
    ])
    def test_detect(self, data, expected):
        assert detect_media_type(data) == expected

    def test_image_block_precedes_prompt(self):
        content = build_content("describe", PNG)

        assert [block["type"] for block in content] == ["image", "text"]
        source = content[0]["source"]
        assert source["media_type"] == "image/png"
        assert base64.b64decode(source["data"]) == PNG
        assert content[1]["text"] == "describe"

    def test_text_only(self):
        assert build_content("aggregate") == [{"type": "text", "text": "aggregate"}]


def test_client_requires_api_key():
    with pytest.raises(ConfigurationError):
        APIClient(api_key=None)


def test_client_keeps_model_name():
    client = APIClient(api_key="sk-test", model="claude-haiku-4-5", max_retries=0)
    assert client.model == "claude-haiku-4-5"
    assert client.max_retries == 1
