"""Worker domain model (read-only view of the external worker directory)."""

from pydantic import BaseModel, Field


class Worker(BaseModel):
    """Worker data transfer object."""

    id: str = Field(..., description="Unique worker ID from the directory")
    name: str = Field(..., description="Display name of the worker")
    role: str = Field(default="", description="Job role (e.g., 'Field Worker')")
    email: str = Field(default="", description="Contact email")
    phone: str = Field(default="", description="Contact phone number")
