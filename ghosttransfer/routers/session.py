"""JSON API over the form session, used by the compose page's script."""

from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from ghosttransfer.models.form import FormStateResponse
from ghosttransfer.models.share import Lifetime, VIEW_PRESETS
from ghosttransfer.models.upload import SelectedFile
from ghosttransfer.services.form_controller import FormController
from ghosttransfer.session import get_controller

router = APIRouter(prefix="/api/session", tags=["session"])


class FieldsUpdate(BaseModel):
    message: str | None = None
    lifetime: Lifetime | None = None
    max_views: str | None = None
    password: str | None = None
    confirm_password: str | None = None
    allowed_ip: str | None = None


class ViewsChoice(BaseModel):
    views: int | None = None  # None selects unlimited


def _state(controller: FormController) -> FormStateResponse:
    return FormStateResponse(
        **controller.state.model_dump(),
        can_submit=controller.can_submit,
    )


def _require_entry(controller: FormController, entry_id: str) -> None:
    if controller.state.get_entry(entry_id) is None:
        raise HTTPException(status_code=404, detail="File not found")


@router.get("", response_model=FormStateResponse)
async def get_state(controller: FormController = Depends(get_controller)):
    return _state(controller)


@router.patch("/fields", response_model=FormStateResponse)
async def update_fields(
    body: FieldsUpdate,
    controller: FormController = Depends(get_controller),
):
    """Apply changed fields in declaration order. Omitted fields are untouched."""
    for name, value in body.model_dump(exclude_none=True).items():
        if name == "lifetime":
            value = Lifetime(value).value
        controller.set_field(name, value)
    return _state(controller)


@router.post("/views", response_model=FormStateResponse)
async def choose_views(
    body: ViewsChoice,
    controller: FormController = Depends(get_controller),
):
    if body.views not in VIEW_PRESETS:
        raise HTTPException(status_code=400, detail=f"Unknown preset: {body.views}")
    controller.choose_views(body.views)
    return _state(controller)


@router.post("/files", response_model=FormStateResponse)
async def add_files(
    files: list[UploadFile] = File(...),
    controller: FormController = Depends(get_controller),
):
    """Add browser files to the form; each starts uploading immediately."""
    selected = []
    for f in files:
        content = await f.read()
        selected.append(SelectedFile(
            id=str(uuid4()),
            name=f.filename or "unnamed",
            size_bytes=len(content),
            content=content,
            content_type=f.content_type,
        ))
    controller.add_files(selected)
    return _state(controller)


@router.post("/files/{entry_id}/retry", response_model=FormStateResponse)
async def retry_file(entry_id: str, controller: FormController = Depends(get_controller)):
    _require_entry(controller, entry_id)
    controller.retry(entry_id)
    return _state(controller)


@router.delete("/files/{entry_id}", response_model=FormStateResponse)
async def remove_file(entry_id: str, controller: FormController = Depends(get_controller)):
    _require_entry(controller, entry_id)
    controller.remove(entry_id)
    return _state(controller)


@router.post("/submit", response_model=FormStateResponse)
async def submit(controller: FormController = Depends(get_controller)):
    """Validate and create the share link. ``result`` is set on success."""
    await controller.submit()
    return _state(controller)


@router.post("/reset", response_model=FormStateResponse)
async def reset(controller: FormController = Depends(get_controller)):
    controller.reset()
    return _state(controller)
