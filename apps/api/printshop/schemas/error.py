"""User-facing error payload."""

from pydantic import BaseModel

from printshop.core.errors import JobActionError


class Diagnosis(BaseModel):
    diagnosis: str
    suggestion: str


class ErrorReport(BaseModel):
    """Title and description for the user; diagnosis is only ever set for the owner."""
    kind: str
    title: str
    description: str
    code: str | None = None
    diagnosis: Diagnosis | None = None

    @classmethod
    def from_error(cls, error: JobActionError, diagnosis: Diagnosis | None = None) -> "ErrorReport":
        return cls(
            kind=error.kind,
            title=error.title,
            description=error.description,
            code=error.code,
            diagnosis=diagnosis,
        )
