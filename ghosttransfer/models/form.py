"""Pydantic model for the compose form state."""

from pydantic import BaseModel

from ghosttransfer.models.share import Lifetime
from ghosttransfer.models.upload import UploadEntry, UploadStatus


class FormState(BaseModel):
    message: str = ""
    lifetime: Lifetime = Lifetime.NONE
    max_views: str = ""  # raw input text
    unlimited_views: bool = True
    password: str = ""
    confirm_password: str = ""
    allowed_ip: str = ""
    entries: list[UploadEntry] = []
    uploaded_urls: list[str] = []
    errors: dict[str, str] = {}
    submitting: bool = False
    result: dict | None = None

    def get_entry(self, entry_id: str) -> UploadEntry | None:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    def has_status(self, status: UploadStatus) -> bool:
        return any(e.status == status for e in self.entries)


class FormStateResponse(FormState):
    can_submit: bool
