"""Compose form state machine.

Every user action and every network completion is an event. ``reduce`` maps
``(state, event)`` to a new state plus a list of effects for the controller
to run (uploads, timers, the share request). It never performs I/O itself,
so the whole form can be exercised without a UI or a network.
"""

from dataclasses import dataclass

from ghosttransfer.models.form import FormState
from ghosttransfer.models.share import ExpirationResult, Lifetime, ShareRequest
from ghosttransfer.models.upload import SelectedFile, UploadEntry, UploadStatus
from ghosttransfer.services.validation import (
    PASSWORD_FIELDS,
    accepts_max_views_input,
    parse_max_views,
    validate_form,
    validate_passwords,
)

API_FALLBACK_ERROR = "Failed to create secret link. Please try again."

TEXT_FIELDS = ("message", "max_views", "password", "confirm_password", "allowed_ip")


# ── Events ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FilesSelected:
    files: list[SelectedFile]


@dataclass(frozen=True)
class UploadStarted:
    entry_id: str


@dataclass(frozen=True)
class ProgressTicked:
    entry_id: str
    value: float


@dataclass(frozen=True)
class UploadSucceeded:
    entry_id: str
    url: str


@dataclass(frozen=True)
class UploadFailed:
    entry_id: str
    message: str


@dataclass(frozen=True)
class SuccessSettled:
    entry_id: str


@dataclass(frozen=True)
class RetryRequested:
    entry_id: str


@dataclass(frozen=True)
class FileRemoved:
    entry_id: str


@dataclass(frozen=True)
class FieldChanged:
    name: str
    value: str


@dataclass(frozen=True)
class ViewsPresetChosen:
    views: int | None  # None selects unlimited


@dataclass(frozen=True)
class SubmitRequested:
    expiration: ExpirationResult


@dataclass(frozen=True)
class ShareCreated:
    result: dict


@dataclass(frozen=True)
class ShareFailed:
    field_errors: dict | None = None


@dataclass(frozen=True)
class FormReset:
    pass


# ── Effects ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StartUpload:
    entry_id: str


@dataclass(frozen=True)
class SettleSuccess:
    entry_id: str


@dataclass(frozen=True)
class CreateShare:
    request: ShareRequest


Effect = StartUpload | SettleSuccess | CreateShare


# ── Queries ──────────────────────────────────────────────────────────────────

def _has_unfinished_uploads(state: FormState) -> bool:
    # A ready entry is about to upload; its URL is not in uploaded_urls yet
    return any(e.status != UploadStatus.SUCCESS for e in state.entries)


def can_submit(state: FormState) -> bool:
    """Whether the submit action is enabled."""
    if state.submitting:
        return False
    if _has_unfinished_uploads(state):
        return False
    if not state.message.strip() and not state.has_status(UploadStatus.SUCCESS):
        return False
    return True


def build_share_request(state: FormState, expiration: ExpirationResult) -> ShareRequest:
    max_views = None
    if not state.unlimited_views:
        max_views = parse_max_views(state.max_views) or None
    return ShareRequest(
        files=list(state.uploaded_urls),
        message=state.message.strip() or None,
        password=state.password or None,
        max_views=max_views,
        expires_at=expiration.expires_at,
        allowed_ip=state.allowed_ip.strip() or None,
        timezone=expiration.timezone,
    )


def map_share_errors(field_errors: dict | None, previous: dict[str, str]) -> dict[str, str]:
    """Map a backend error body onto form fields (first message per field)."""
    if not field_errors:
        return {**previous, "api": API_FALLBACK_ERROR}
    errors: dict[str, str] = {}
    for key, value in field_errors.items():
        if isinstance(value, list):
            errors[key] = str(value[0]) if value else ""
        else:
            errors[key] = str(value)
    return errors


# ── Transitions ──────────────────────────────────────────────────────────────

def _update_entry(state: FormState, entry_id: str, **changes) -> FormState:
    entries = [
        e.model_copy(update=changes) if e.id == entry_id else e
        for e in state.entries
    ]
    return state.model_copy(update={"entries": entries})


def _files_selected(state: FormState, event: FilesSelected):
    incoming = [
        UploadEntry(id=f.id, name=f.name, size_bytes=f.size_bytes)
        for f in event.files
        if state.get_entry(f.id) is None
    ]
    state = state.model_copy(update={"entries": [*state.entries, *incoming]})
    return state, [StartUpload(e.id) for e in incoming]


def _upload_started(state: FormState, event: UploadStarted):
    entry = state.get_entry(event.entry_id)
    if entry is None or entry.status != UploadStatus.READY:
        return state, []
    return _update_entry(
        state, entry.id,
        status=UploadStatus.UPLOADING, progress=0.0, error_message=None,
    ), []


def _progress_ticked(state: FormState, event: ProgressTicked):
    entry = state.get_entry(event.entry_id)
    if entry is None or entry.status != UploadStatus.UPLOADING:
        return state, []
    # Only a resolved upload may reach 100
    value = max(0.0, min(event.value, 99.0))
    return _update_entry(state, entry.id, progress=value), []


def _upload_succeeded(state: FormState, event: UploadSucceeded):
    entry = state.get_entry(event.entry_id)
    if entry is None or entry.status != UploadStatus.UPLOADING:
        return state, []
    state = _update_entry(
        state, entry.id,
        status=UploadStatus.SUCCESS,
        remote_url=event.url,
        error_message=None,
        progress=100.0,
        show_success=True,
    )
    state = state.model_copy(update={"uploaded_urls": [*state.uploaded_urls, event.url]})
    return state, [SettleSuccess(entry.id)]


def _upload_failed(state: FormState, event: UploadFailed):
    entry = state.get_entry(event.entry_id)
    if entry is None or entry.status != UploadStatus.UPLOADING:
        return state, []
    return _update_entry(
        state, entry.id,
        status=UploadStatus.ERROR,
        error_message=event.message,
        progress=None,
        show_success=False,
    ), []


def _success_settled(state: FormState, event: SuccessSettled):
    entry = state.get_entry(event.entry_id)
    if entry is None or entry.status != UploadStatus.SUCCESS:
        return state, []
    return _update_entry(state, entry.id, show_success=False, progress=None), []


def _retry_requested(state: FormState, event: RetryRequested):
    entry = state.get_entry(event.entry_id)
    if entry is None or entry.status != UploadStatus.ERROR:
        return state, []
    state = _update_entry(
        state, entry.id, status=UploadStatus.READY, error_message=None, progress=None,
    )
    return state, [StartUpload(entry.id)]


def _file_removed(state: FormState, event: FileRemoved):
    entry = state.get_entry(event.entry_id)
    if entry is None:
        return state, []
    urls = list(state.uploaded_urls)
    if entry.remote_url is not None and entry.remote_url in urls:
        urls.remove(entry.remote_url)
    entries = [e for e in state.entries if e.id != entry.id]
    return state.model_copy(update={"entries": entries, "uploaded_urls": urls}), []


def _field_changed(state: FormState, event: FieldChanged):
    if event.name == "lifetime":
        return state.model_copy(update={"lifetime": Lifetime(event.value)}), []
    if event.name not in TEXT_FIELDS:
        raise ValueError(f"Unknown form field: {event.name}")

    update: dict = {event.name: event.value}
    if event.name == "max_views":
        if not accepts_max_views_input(event.value):
            return state, []
        update["unlimited_views"] = False
    state = state.model_copy(update=update)

    if event.name in PASSWORD_FIELDS:
        errors = {k: v for k, v in state.errors.items() if k not in PASSWORD_FIELDS}
        errors.update(validate_passwords(state.password, state.confirm_password))
        state = state.model_copy(update={"errors": errors})
    return state, []


def _views_preset_chosen(state: FormState, event: ViewsPresetChosen):
    if event.views is None:
        return state.model_copy(update={"unlimited_views": True, "max_views": ""}), []
    return state.model_copy(
        update={"unlimited_views": False, "max_views": str(event.views)}
    ), []


def _submit_requested(state: FormState, event: SubmitRequested):
    if state.submitting:
        return state, []
    if _has_unfinished_uploads(state):
        return state, []
    errors = validate_form(state)
    if errors:
        return state.model_copy(update={"errors": errors}), []
    request = build_share_request(state, event.expiration)
    return state.model_copy(update={"errors": {}, "submitting": True}), [CreateShare(request)]


def _share_created(state: FormState, event: ShareCreated):
    if not state.submitting:
        return state, []
    return state.model_copy(update={"submitting": False, "result": event.result}), []


def _share_failed(state: FormState, event: ShareFailed):
    if not state.submitting:
        return state, []
    errors = map_share_errors(event.field_errors, state.errors)
    return state.model_copy(update={"submitting": False, "errors": errors}), []


def _form_reset(state: FormState, event: FormReset):
    return FormState(), []


_HANDLERS = {
    FilesSelected: _files_selected,
    UploadStarted: _upload_started,
    ProgressTicked: _progress_ticked,
    UploadSucceeded: _upload_succeeded,
    UploadFailed: _upload_failed,
    SuccessSettled: _success_settled,
    RetryRequested: _retry_requested,
    FileRemoved: _file_removed,
    FieldChanged: _field_changed,
    ViewsPresetChosen: _views_preset_chosen,
    SubmitRequested: _submit_requested,
    ShareCreated: _share_created,
    ShareFailed: _share_failed,
    FormReset: _form_reset,
}


def reduce(state: FormState, event) -> tuple[FormState, list[Effect]]:
    """Apply one event. Returns the new state and the effects to run."""
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unhandled event: {event!r}")
    return handler(state, event)
