"""Unit tests for form input normalization.

Covers numeric/checkbox coercion, per-model input shapes and rejection of
unknown model types and missing images.
"""

import pytest

from genmesh.models.generation_request import ImageUpload, ModelType
from genmesh.services.exceptions import (
    InvalidModelTypeError,
    MissingAssetError,
    ValidationError,
)
from genmesh.services.generation.normalizer import (
    normalize_request,
    parse_optional_float,
    parse_optional_int,
)

PNG = ImageUpload(filename="chair.png", content_type="image/png", data=b"\x89PNG\r\n")


class TestNumericParsing:
    @pytest.mark.parametrize(
        "raw, expected",
        [("12", 12.0), ("7.5", 7.5), (" 3", 3.0), ("12.5abc", 12.5), (".5", 0.5), ("-2", -2.0)],
    )
    def test_float_prefix(self, raw, expected):
        assert parse_optional_float(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", "NaN", "Infinity", "   ", "1e999"])
    def test_float_not_provided(self, raw):
        assert parse_optional_float(raw) is None

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("42", 42),
            ("7.9", 7),
            ("-3", -3),
            ("10steps", 10),
            ("0x10", 16),
            ("-0Xff", -255),
            ("0x1g", 1),
        ],
    )
    def test_int_prefix(self, raw, expected):
        assert parse_optional_int(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", ".5", "0x", "0xg"])
    def test_int_not_provided(self, raw):
        assert parse_optional_int(raw) is None


class TestModelType:
    @pytest.mark.parametrize("value", [None, "", "obj", "PLY"])
    def test_unknown_model_type_rejected(self, value):
        fields = {"prompt": "a red cube"}
        if value is not None:
            fields["model_type"] = value

        with pytest.raises(InvalidModelTypeError) as exc_info:
            normalize_request(fields)

        assert str(exc_info.value) == "Invalid model type"
        assert exc_info.value.status_code == 400


class TestPlyInput:
    def test_prompt_and_guidance_only(self):
        """Absent optional fields never appear in the model input."""
        request = normalize_request(
            {"model_type": "ply", "prompt": "a red cube", "guidance_scale": "12"}
        )

        assert request.model_type == ModelType.PLY
        assert request.to_model_input() == {"prompt": "a red cube", "guidance_scale": 12}

    def test_malformed_numbers_same_as_absent(self):
        base = {"model_type": "ply", "prompt": "a red cube"}
        malformed = {**base, "guidance_scale": "lots", "max_steps": "many", "seed": "x"}

        assert (
            normalize_request(malformed).to_model_input()
            == normalize_request(base).to_model_input()
        )

    def test_all_fields(self):
        request = normalize_request(
            {
                "model_type": "ply",
                "prompt": "a knight",
                "negative_prompt": "blurry",
                "guidance_scale": "7.5",
                "max_steps": "1200",
                "avatar": "on",
                "seed": "42",
            }
        )

        assert request.to_model_input() == {
            "prompt": "a knight",
            "negative_prompt": "blurry",
            "guidance_scale": 7.5,
            "max_steps": 1200,
            "avatar": True,
            "seed": 42,
        }

    def test_empty_negative_prompt_and_unchecked_avatar_omitted(self):
        request = normalize_request(
            {"model_type": "ply", "prompt": "p", "negative_prompt": "", "avatar": "off"}
        )

        assert request.to_model_input() == {"prompt": "p"}

    def test_foreign_fields_ignored(self):
        request = normalize_request(
            {"model_type": "ply", "prompt": "p", "num_steps": "5", "image_url": "https://x/y.png"}
        )

        assert request.to_model_input() == {"prompt": "p"}


class TestDynamicGlbInput:
    def test_upload_without_file_rejected(self):
        with pytest.raises(MissingAssetError) as exc_info:
            normalize_request({"model_type": "dynamic_glb", "image_type": "upload", "prompt": "p"})

        assert str(exc_info.value) == "No image file provided"

    def test_upload_with_string_value_rejected(self):
        with pytest.raises(MissingAssetError):
            normalize_request(
                {"model_type": "dynamic_glb", "image_type": "upload", "image": "chair.png"}
            )

    def test_upload_with_empty_file_rejected(self):
        empty = ImageUpload(filename="empty.png", content_type="image/png", data=b"")

        with pytest.raises(MissingAssetError):
            normalize_request({"model_type": "dynamic_glb", "image_type": "upload", "image": empty})

    def test_upload_keeps_blob_for_relay(self):
        request = normalize_request(
            {
                "model_type": "dynamic_glb",
                "image_type": "upload",
                "image": PNG,
                "prompt": "a chair",
                "use_fast_configs": "on",
                "num_steps": "30",
            }
        )

        assert request.needs_upload
        assert request.to_model_input(image_url="https://signed/url") == {
            "prompt": "a chair",
            "image": "https://signed/url",
            "use_fast_configs": True,
            "num_steps": 30,
        }

    def test_image_url(self):
        request = normalize_request(
            {
                "model_type": "dynamic_glb",
                "image_type": "url",
                "image_url": "https://example.com/chair.png",
                "prompt": "a chair",
                "seed": "7",
            }
        )

        assert not request.needs_upload
        assert request.to_model_input() == {
            "prompt": "a chair",
            "image": "https://example.com/chair.png",
            "seed": 7,
        }

    def test_image_url_missing_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_request({"model_type": "dynamic_glb", "image_type": "url", "image_url": " "})

        assert str(exc_info.value) == "No image URL provided"

    def test_no_image_type_sends_no_image(self):
        request = normalize_request({"model_type": "dynamic_glb", "prompt": "p"})

        assert request.to_model_input() == {"prompt": "p"}

    def test_request_is_immutable(self):
        request = normalize_request({"model_type": "dynamic_glb", "prompt": "p"})

        with pytest.raises(Exception):
            request.prompt = "changed"  # type: ignore[misc]
