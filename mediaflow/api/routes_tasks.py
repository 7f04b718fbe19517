from __future__ import annotations

from fastapi import APIRouter, Depends

from mediaflow.adapters.contracts import ChatImageInput, ChatImageOutput, FileUploadInput, TaskStatusOutput
from mediaflow.api.deps import get_dispatcher
from mediaflow.api.errors import to_http_error
from mediaflow.client.dispatcher import Dispatcher
from mediaflow.core.errors import MediaflowError
from mediaflow.runtime.runner import generate_chat_image, get_task_status, upload_file


router = APIRouter(tags=["tasks"])


@router.get("/tasks/{task_id}", response_model=TaskStatusOutput)
async def task_status(
    task_id: str,
    media_url_only: bool = False,
    dispatcher: Dispatcher = Depends(get_dispatcher),
):
    try:
        return await get_task_status(dispatcher, task_id, media_url_only=media_url_only)
    except MediaflowError as e:
        raise to_http_error(e)


@router.post("/files")
async def upload(req: FileUploadInput, dispatcher: Dispatcher = Depends(get_dispatcher)):
    try:
        return await upload_file(dispatcher, req)
    except MediaflowError as e:
        raise to_http_error(e)


@router.post("/chat/images", response_model=ChatImageOutput)
async def chat_image(req: ChatImageInput, dispatcher: Dispatcher = Depends(get_dispatcher)):
    # a "failed" generation is still a 200: the stream completed and carries the reason
    try:
        return await generate_chat_image(dispatcher, req)
    except MediaflowError as e:
        raise to_http_error(e)
