import asyncio
import base64
import json

import pytest

from mediaflow.adapters.catalog import FACESWAP_IMAGE, FLUX_TEXT_TO_IMAGE, KLING_TEXT_TO_VIDEO
from mediaflow.adapters.contracts import ChatImageInput, FileUploadInput
from mediaflow.client.dispatcher import TransportResponse
from mediaflow.core.errors import ApiResponseError, InputValidationError, TaskFailedError
from mediaflow.runtime.runner import (
    build_chat_messages,
    generate_chat_image,
    get_task_status,
    infer_task_id,
    run_adapter,
    run_items,
    upload_file,
)

IMG = "https://cdn.example.test/in.png"


def _submitted(task_id="t-1", status="pending"):
    return {"code": 200, "message": "success", "data": {"task_id": task_id, "status": status}}


def test_run_adapter_without_wait(dispatcher, transport):
    transport.push(_submitted())

    out = asyncio.run(run_adapter(dispatcher, KLING_TEXT_TO_VIDEO, {"prompt": "x"}))

    assert out == {"task_id": "t-1", "status": "pending"}
    body = transport.calls[0]["json"]
    assert body["model"] == "kling"
    assert body["config"] == {"webhook_config": {"endpoint": "", "secret": ""}}


def test_run_adapter_waits_and_returns_final_data(dispatcher, transport, envelope):
    transport.push(_submitted(), envelope("completed", output={"image_url": IMG}))

    out = asyncio.run(run_adapter(dispatcher, FLUX_TEXT_TO_IMAGE, {"prompt": "x"}, retry_interval_ms=0))

    assert out["output"]["image_url"] == IMG
    assert [c["method"] for c in transport.calls] == ["POST", "GET"]


def test_submit_error_envelope(dispatcher, transport):
    transport.push({"code": 400, "message": "invalid request"})
    with pytest.raises(ApiResponseError, match="API Error: invalid request"):
        asyncio.run(run_adapter(dispatcher, KLING_TEXT_TO_VIDEO, {"prompt": "x"}))


def test_submit_without_task_id(dispatcher, transport):
    transport.push({"code": 200, "data": {}})
    with pytest.raises(ApiResponseError, match="valid task ID"):
        asyncio.run(run_adapter(dispatcher, KLING_TEXT_TO_VIDEO, {"prompt": "x"}))


def test_validation_error_makes_no_call(dispatcher, transport):
    with pytest.raises(InputValidationError):
        asyncio.run(run_adapter(dispatcher, KLING_TEXT_TO_VIDEO, {}))
    assert transport.calls == []


def test_run_items_continue_on_fail(dispatcher, transport):
    transport.push(_submitted("a"), _submitted("c"))

    out = asyncio.run(
        run_items(dispatcher, KLING_TEXT_TO_VIDEO, [{"prompt": "a"}, {}, {"prompt": "c"}], continue_on_fail=True)
    )

    assert out[0]["task_id"] == "a"
    assert "prompt" in out[1]["error"]
    assert out[2]["task_id"] == "c"


def test_run_items_stops_on_first_failure(dispatcher, transport):
    with pytest.raises(InputValidationError):
        asyncio.run(run_items(dispatcher, KLING_TEXT_TO_VIDEO, [{}, {"prompt": "b"}], continue_on_fail=False))
    assert transport.calls == []


def test_faceswap_failure_gets_a_hint(dispatcher, transport, envelope):
    transport.push(_submitted(), envelope("failed", error={"message": "failed to get valid image"}))

    out = asyncio.run(
        run_items(
            dispatcher,
            FACESWAP_IMAGE,
            [{"target_image": IMG, "swap_image": IMG}],
            wait=True,
            retry_interval_ms=0,
            continue_on_fail=True,
        )
    )

    assert out[0]["error"].startswith("The API could not process the provided image")
    assert "failed to get valid image" in out[0]["details"]


def test_faceswap_failure_raises_without_continue(dispatcher, transport, envelope):
    transport.push(_submitted(), envelope("failed", error={"message": "failed to get valid image"}))
    with pytest.raises(TaskFailedError):
        asyncio.run(
            run_items(
                dispatcher, FACESWAP_IMAGE, [{"target_image": IMG, "swap_image": IMG}],
                wait=True, retry_interval_ms=0, continue_on_fail=False,
            )
        )


def test_infer_task_id():
    assert infer_task_id({"data": {"task_id": "x"}}) == "x"
    assert infer_task_id({"task_id": " y "}) == "y"
    with pytest.raises(InputValidationError):
        infer_task_id({"data": {}})


def test_task_status_media_url(dispatcher, transport, envelope):
    transport.push(envelope("completed", output={"video_url": "https://v.example.test/x.mp4"}))

    out = asyncio.run(get_task_status(dispatcher, "t-1", media_url_only=True))

    assert out.code == 200
    assert out.data["media_url"] == "https://v.example.test/x.mp4"
    assert out.data["type"] == "video"


def test_task_status_error_envelope(dispatcher, transport):
    transport.push({"code": 404, "message": "task not found", "data": None})
    with pytest.raises(ApiResponseError, match="Failed to retrieve task: task not found"):
        asyncio.run(get_task_status(dispatcher, "t-1"))


def test_upload_manual(dispatcher, transport):
    transport.push({"code": 200, "data": {"url": "https://upload.example.test/f.png"}})

    out = asyncio.run(upload_file(dispatcher, FileUploadInput(file_name="cat.png", file_data="aGVsbG8=")))

    assert out["data"]["url"].endswith("f.png")
    call = transport.calls[0]
    assert call["url"].startswith("https://upload.")
    assert call["headers"]["X-API-Key"] == "test-key"
    assert call["json"] == {"file_name": "cat.png", "file_data": "aGVsbG8="}


def test_upload_from_url_uses_content_type(dispatcher, transport):
    transport.push(
        TransportResponse(status=200, body=b"RIFF", headers={"Content-Type": "audio/wav"}),
        {"code": 200},
    )

    asyncio.run(upload_file(dispatcher, FileUploadInput(file_url="https://cdn.example.test/sound")))

    sent = transport.calls[1]["json"]
    assert sent["file_name"].endswith(".wav")
    assert base64.b64decode(sent["file_data"]) == b"RIFF"


def test_upload_rejects_unsupported_extension(dispatcher, transport):
    with pytest.raises(InputValidationError, match="not supported"):
        asyncio.run(upload_file(dispatcher, FileUploadInput(file_name="notes.txt", file_data="aGk=")))
    assert transport.calls == []


def _sse(*contents):
    parts = ["data: " + json.dumps({"choices": [{"delta": {"content": c}}]}) for c in contents]
    return "\n\n".join(parts + ["data: [DONE]"]) + "\n\n"


def test_chat_messages_with_prefixes():
    msgs = build_chat_messages(ChatImageInput(prompt="a fox", aspect_ratio="1280:720", image_style="anime"))
    assert msgs == [{"role": "user", "content": "Image size: 1280:720. Image style: anime. a fox"}]

    custom = build_chat_messages(ChatImageInput(prompt="a fox", aspect_ratio="custom", width=640, height=480))
    assert custom[0]["content"] == "Image size: 640x480. a fox"


def test_chat_messages_with_image():
    msgs = build_chat_messages(ChatImageInput(prompt="make it blue", image={"url": IMG}))
    content = msgs[0]["content"]
    assert content[0] == {"type": "image_url", "image_url": {"url": IMG}}
    assert content[1]["text"].endswith("make it blue")


def test_chat_messages_conversation():
    prev = json.dumps([{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}])
    msgs = build_chat_messages(ChatImageInput(prompt="again", previous_messages=prev))
    assert len(msgs) == 3
    assert msgs[-1] == {"role": "user", "content": "again"}

    with pytest.raises(InputValidationError, match="JSON array"):
        build_chat_messages(ChatImageInput(prompt="again", previous_messages='{"role": "user"}'))


def test_generate_chat_image_completed(dispatcher, transport):
    transport.push(_sse("Generating 50%", " done ", "![img](https://cdn.example.test/o.png)"))

    out = asyncio.run(generate_chat_image(dispatcher, ChatImageInput(prompt="a fox")))

    assert out.status == "completed"
    assert out.image_url == "https://cdn.example.test/o.png"
    assert out.progress == 50
    assert out.progress_display == "50%"
    assert out.messages[-1]["role"] == "assistant"
    body = transport.calls[0]["json"]
    assert body["stream"] is True
    assert body["model"] == "gpt-4o-image-preview"


def test_generate_chat_image_failed(dispatcher, transport):
    transport.push(_sse("Generation failed\nReason: policy\nSuggestion: try again\n"))

    out = asyncio.run(generate_chat_image(dispatcher, ChatImageInput(prompt="a fox")))

    assert out.status == "failed"
    assert out.error["reason"] == "policy"
    assert out.error["suggestion"] == "try again"
    assert out.image_url is None


def test_chat_http_error_raises(dispatcher, transport):
    transport.push(TransportResponse(status=401, body=b'{"code": 401, "message": "Invalid API key"}'))

    with pytest.raises(ApiResponseError, match="Invalid API key") as exc:
        asyncio.run(generate_chat_image(dispatcher, ChatImageInput(prompt="a fox")))

    assert "401" in str(exc.value)
    assert exc.value.response["code"] == 401


def test_chat_error_envelope_instead_of_stream_raises(dispatcher, transport):
    transport.push({"code": 500, "message": "upstream busy"})
    with pytest.raises(ApiResponseError, match="upstream busy"):
        asyncio.run(generate_chat_image(dispatcher, ChatImageInput(prompt="a fox")))


def test_chat_openai_style_error_body(dispatcher, transport):
    transport.push(TransportResponse(status=429, body=b'{"error": {"message": "rate limited"}}'))
    with pytest.raises(ApiResponseError, match="rate limited"):
        asyncio.run(generate_chat_image(dispatcher, ChatImageInput(prompt="a fox")))


def test_bad_custom_dimension_is_an_item_error(dispatcher, transport):
    transport.push(_submitted("ok"))

    out = asyncio.run(
        run_items(
            dispatcher,
            FLUX_TEXT_TO_IMAGE,
            [{"prompt": "x", "aspect_ratio": "custom", "width": "wide"}, {"prompt": "y", "aspect_ratio": "custom"}],
            wait=False,
            continue_on_fail=True,
        )
    )

    assert out[0] == {"error": "Parameter 'width' must be an integer"}
    assert out[1]["task_id"] == "ok"
    assert transport.calls[0]["json"]["input"]["width"] == 1024


def test_hints_only_for_faceswap(dispatcher, transport):
    transport.push({"code": 400, "message": "failed to get valid image"})

    out = asyncio.run(run_items(dispatcher, KLING_TEXT_TO_VIDEO, [{"prompt": "x"}], continue_on_fail=True))

    assert out == [{"error": "API Error: failed to get valid image"}]
