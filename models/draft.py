from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# DRAFT RECORD (persisted as "draft-v2-<draftId>")
# ============================================================
class DraftRecord(BaseModel):
    """One in-progress creative upload.

    Field names are snake_case in Python; the stored JSON keeps the
    camelCase names the browser client writes. `form_data` belongs to the
    caller and is stored as-is, including keys this model knows nothing about.
    """

    draft_id: str = Field(alias="draftId")
    creative_filename: str = Field("Untitled", alias="creativeFilename")
    last_saved: str = Field(alias="lastSaved")
    auto_saved: bool = Field(False, alias="autoSaved")
    form_data: Dict[str, Any] = Field(default_factory=dict, alias="formData")
    image_url: Optional[str] = Field(None, alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_storage(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True)
        # JSON.stringify drops undefined members; keep the same shape on disk.
        if data.get("imageUrl") is None:
            data.pop("imageUrl", None)
        return data

    @classmethod
    def from_storage(cls, raw: Any) -> "DraftRecord":
        if not isinstance(raw, Mapping):
            raise ValueError(f"draft record must be an object, got {type(raw).__name__}")
        return cls.model_validate(dict(raw))
