import pytest
from pydantic import ValidationError

from mediaflow.adapters.builder import build_task_body, resolve_dimensions
from mediaflow.adapters.catalog import (
    ALL_ADAPTERS,
    DREAM_MACHINE_EXTEND_VIDEO,
    DREAM_MACHINE_IMAGE_TO_VIDEO,
    FLUX_TEXT_TO_IMAGE,
    HUNYUAN_TEXT_TO_VIDEO,
    KLING_IMAGE_TO_VIDEO,
    KLING_LIP_SYNC,
    MIDJOURNEY_IMAGINE,
    TEXT_TO_SPEECH,
    WANX_TEXT_TO_VIDEO,
)
from mediaflow.adapters.constants import ASPECT_RATIO_OPTIONS, parse_dimensions
from mediaflow.adapters.dsl import AdapterSpec, FieldSpec
from mediaflow.adapters.registry import build_adapter_registry
from mediaflow.core.errors import InputValidationError

IMG = "https://cdn.example.test/in.png"


def test_flux_defaults():
    body = build_task_body(FLUX_TEXT_TO_IMAGE, {"prompt": "a cat"})
    assert body == {
        "model": "Qubico/flux1-schnell",
        "task_type": "txt2img",
        "input": {
            "prompt": "a cat",
            "negative_prompt": "",
            "width": 1024,
            "height": 1024,
            "guidance_scale": 3,
            "batch_size": 1,
        },
    }


def test_flux_model_and_aspect_ratio():
    body = build_task_body(
        FLUX_TEXT_TO_IMAGE,
        {"prompt": "a cat", "model": "Qubico/flux1-dev", "aspect_ratio": "1280:720", "batch_size": "2"},
    )
    assert body["model"] == "Qubico/flux1-dev"
    assert (body["input"]["width"], body["input"]["height"]) == (1280, 720)
    assert body["input"]["batch_size"] == 2


def test_required_prompt():
    with pytest.raises(InputValidationError, match="prompt"):
        build_task_body(FLUX_TEXT_TO_IMAGE, {})


def test_out_of_range_number():
    with pytest.raises(InputValidationError, match="guidance_scale"):
        build_task_body(FLUX_TEXT_TO_IMAGE, {"prompt": "x", "guidance_scale": 9})


def test_invalid_choice():
    with pytest.raises(InputValidationError, match="process_mode"):
        build_task_body(MIDJOURNEY_IMAGINE, {"prompt": "x", "process_mode": "slow"})


def test_config_is_copied_per_body():
    a = build_task_body(MIDJOURNEY_IMAGINE, {"prompt": "x", "service_mode": "private"})
    b = build_task_body(MIDJOURNEY_IMAGINE, {"prompt": "y"})
    assert a["config"]["service_mode"] == "private"
    assert b["config"]["service_mode"] == ""
    assert MIDJOURNEY_IMAGINE.config["service_mode"] == ""


def test_key_frames_carry_type():
    body = build_task_body(DREAM_MACHINE_IMAGE_TO_VIDEO, {"prompt": "x", "frame0": IMG})
    assert body["input"]["key_frames"] == {"frame0": {"url": IMG, "type": "image"}}
    assert body["config"] == {"service_mode": ""}


def test_extend_video_frame():
    body = build_task_body(DREAM_MACHINE_EXTEND_VIDEO, {"prompt": "x", "video": "https://cdn.example.test/v.mp4"})
    assert body["input"]["key_frames"]["frame0"] == {"url": "https://cdn.example.test/v.mp4", "type": "video"}


def test_require_one_of():
    with pytest.raises(InputValidationError, match="One of image_url, elements is required"):
        build_task_body(KLING_IMAGE_TO_VIDEO, {"prompt": "x"})


def test_elements_limits():
    body = build_task_body(KLING_IMAGE_TO_VIDEO, {"elements": [IMG, IMG]})
    assert body["input"]["elements"] == [{"image_url": IMG}, {"image_url": IMG}]
    assert "image_url" not in body["input"]
    with pytest.raises(InputValidationError, match="maximum of 4"):
        build_task_body(KLING_IMAGE_TO_VIDEO, {"elements": [IMG] * 5})


def test_task_type_param():
    body = build_task_body(HUNYUAN_TEXT_TO_VIDEO, {"prompt": "x", "task_type": "fast-txt2video"})
    assert body["task_type"] == "fast-txt2video"
    assert "task_type" not in body["input"]


def test_conditional_fields():
    plain = build_task_body(WANX_TEXT_TO_VIDEO, {"prompt": "x"})
    assert "lora_settings" not in plain["input"]

    lora = build_task_body(WANX_TEXT_TO_VIDEO, {"prompt": "x", "model": "txt2video-14b-lora"})
    assert lora["task_type"] == "txt2video-14b-lora"
    assert lora["input"]["lora_settings"] == {"lora_type": "ghibli", "lora_strength": 1}


def test_lip_sync_branches():
    tts = build_task_body(KLING_LIP_SYNC, {"origin_task_id": "o", "tts_text": "hi"})
    assert tts["input"]["tts_text"] == "hi"
    assert "local_dubbing_url" not in tts["input"]

    with pytest.raises(InputValidationError, match="local_dubbing_url"):
        build_task_body(KLING_LIP_SYNC, {"origin_task_id": "o", "audio_source": "audio_url"})


def test_base64_media_becomes_data_url():
    body = build_task_body(KLING_IMAGE_TO_VIDEO, {"image_url": {"data": "aGVsbG8=", "mime_type": "image/png"}})
    assert body["input"]["image_url"] == "data:image/png;base64,aGVsbG8="


def test_base64_media_with_wrong_kind():
    with pytest.raises(InputValidationError, match="not an image"):
        build_task_body(KLING_IMAGE_TO_VIDEO, {"image_url": {"data": "aGVsbG8=", "mime_type": "video/mp4"}})


def test_bad_media_url():
    with pytest.raises(InputValidationError, match="Invalid URL"):
        build_task_body(KLING_IMAGE_TO_VIDEO, {"image_url": "ftp://nope"})


def test_dimensions():
    assert resolve_dimensions("custom", {"width": 640, "height": 480}) == {"width": 640, "height": 480}
    assert resolve_dimensions("landscape_header", {}) == {"width": 1024, "height": 1024}
    with pytest.raises(InputValidationError):
        resolve_dimensions("wide", {})
    assert parse_dimensions("864:1080") == (864, 1080)
    assert ASPECT_RATIO_OPTIONS[0]["value"] == "square_header"
    assert ASPECT_RATIO_OPTIONS[-1]["value"] == "custom"


def test_spec_validation():
    with pytest.raises(ValidationError):
        FieldSpec(name="x", target="output.x")
    with pytest.raises(ValidationError):
        AdapterSpec(name="a", display_name="A", model="m", task_type="t", fields=[FieldSpec(name="x"), FieldSpec(name="x")])
    with pytest.raises(ValidationError):
        AdapterSpec(name="a", display_name="A", model="m", task_type="t", require_one_of=[["missing"]])


def test_catalog_registers_cleanly():
    reg = build_adapter_registry()
    assert len(reg) == len(ALL_ADAPTERS)
    assert "flux-text-to-image" in reg
    assert reg.get("midjourney-imagine").max_retries == 60
    with pytest.raises(KeyError):
        reg.get("nope")
    with pytest.raises(ValueError):
        reg.register(FLUX_TEXT_TO_IMAGE)


def test_truthy_condition_reads_boolean_strings():
    base = {"gen_text": "hello", "ref_audio": "https://cdn.example.test/r.wav", "ref_text": "hi"}
    off = build_task_body(TEXT_TO_SPEECH, {**base, "include_ref_text": "false"})
    on = build_task_body(TEXT_TO_SPEECH, {**base, "include_ref_text": "true"})
    assert "ref_text" not in off["input"]
    assert on["input"]["ref_text"] == "hi"
    assert on["config"] == {"service_mode": "public"}


def test_custom_dimensions_must_be_integers():
    with pytest.raises(InputValidationError, match="Parameter 'height' must be an integer"):
        resolve_dimensions("custom", {"width": 640, "height": "tall"})
    assert resolve_dimensions("custom", {"width": "640"}) == {"width": 640, "height": 1024}
