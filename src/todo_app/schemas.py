from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidInput

PRIORITY_MIN = -(2**63)
PRIORITY_MAX = 2**63 - 1


# PUBLIC_INTERFACE
class TodoForm(BaseModel):
    """
    Schema for the create/edit form submitted by the browser.

    Both fields arrive as strings; priority is coerced to an integer and
    non-numeric or out-of-range text is rejected.
    """

    model_config = ConfigDict(extra="ignore")

    description: str = Field(..., description="Free-text description of the todo item")
    # Bounded to what BSON can store as an int64
    priority: int = Field(..., ge=PRIORITY_MIN, le=PRIORITY_MAX, description="Integer priority")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        """
        Strip whitespace and require at least one character.
        """
        s = v.strip()
        if not s:
            raise ValueError("description is required")
        return s

    @field_validator("priority", mode="before")
    @classmethod
    def strip_priority(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("priority is required")
        return v


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "form"
        parts.append(f"{field}: {err.get('msg')}")
    return "; ".join(parts)


# PUBLIC_INTERFACE
def parse_todo_form(data: Mapping[str, Any]) -> TodoForm:
    """
    Validate submitted form data into a TodoForm.

    Raises:
        InvalidInput: when a field is missing or priority is not an integer.
    """
    try:
        return TodoForm.model_validate(dict(data))
    except ValidationError as e:
        raise InvalidInput(f"Invalid todo: {_describe(e)}") from e
