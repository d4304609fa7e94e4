# app/models/api/job_request.py
from pydantic import BaseModel, Field


class StartImportRequest(BaseModel):
    """Start a bulk import into one provider list."""

    account_id: str = Field(..., min_length=1)
    list_id: str = Field(..., min_length=1)
    list_name: str = ""
    contacts_text: str = Field(..., description="One 'email,firstName,lastName' per line")
    delay_seconds: float = Field(default=1.0, ge=0, description="Pause between contacts")


class StartDeletionRequest(BaseModel):
    """Delete every subscriber of one provider list."""

    account_id: str = Field(..., min_length=1)
    list_id: str = Field(..., min_length=1)
