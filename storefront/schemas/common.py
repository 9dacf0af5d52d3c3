"""Form parsing shared by the HTML form handlers."""

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from storefront.core.exceptions import ValidationError

FormT = TypeVar("FormT", bound=BaseModel)


def _errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    out = []
    for err in exc.errors():
        cause = (err.get("ctx") or {}).get("error")
        out.append(
            {
                "param": str(err["loc"][0]) if err["loc"] else "",
                "msg": str(cause) if cause else err["msg"],
            }
        )
    return out


def parse_form(model: type[FormT], data: dict[str, Any]) -> FormT:
    """Validate submitted form values; on failure raise ValidationError echoing them back."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = _errors(e)
        raise ValidationError(errors[0]["msg"], errors=errors, old_input=data) from e
