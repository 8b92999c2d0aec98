"""
Base model for mutation payloads that arrive as JSON or as form posts.

Form posts deliver every value as a string and leave untouched inputs as
``""``. The ``mode="before"`` helpers here map those onto what the models
declare: a blank means "not supplied", flags accept only "true"/"false" and
integers accept base-10 digit strings. Everything else is regular pydantic
validation, and every failing field is reported at once.
"""
import json
from typing import Any, List, Literal, Mapping, Optional, Sequence, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from catalog_admin.errors import ValidationError


def blank_to_none(value: Any) -> Any:
    """Form inputs left empty count as not supplied"""
    if isinstance(value, str) and value == "":
        return None
    return value


def form_bool(value: Any) -> Any:
    value = blank_to_none(value)
    if value is None or isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError("must be true or false")


def form_int(value: Any) -> Any:
    value = blank_to_none(value)
    # pydantic would take True as 1 and 2.0 as 2
    if isinstance(value, (bool, float)):
        raise ValueError("must be an integer")
    if isinstance(value, str):
        return value.strip()
    return value


def form_number(value: Any) -> Any:
    value = blank_to_none(value)
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, str):
        return value.strip()
    return value


def _unwrap_optional(annotation):
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _fmt(bound) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


class FormModel(BaseModel):
    """Request model that tolerates form encoding and reports field problems"""

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def expected(cls, name: str) -> str:
        """Human readable shape of a field, used in error details"""
        info = cls.model_fields[name]
        annotation = _unwrap_optional(info.annotation)
        if get_origin(annotation) is Literal:
            return "one of: " + ", ".join(get_args(annotation))
        if get_origin(annotation) in (list, List):
            return "array of strings"
        if annotation is bool:
            return "true or false"
        if isinstance(info.json_schema_extra, dict) and info.json_schema_extra.get("format") == "email":
            return "email address"

        bounds = {}
        max_length = None
        for constraint in info.metadata:
            for attr in ("ge", "gt", "le", "lt"):
                if getattr(constraint, attr, None) is not None:
                    bounds[attr] = getattr(constraint, attr)
            if getattr(constraint, "max_length", None) is not None:
                max_length = constraint.max_length

        if annotation is str:
            return f"string (max {max_length} characters)" if max_length else "string"

        label = "integer" if annotation is int else "number"
        lower = bounds.get("ge", bounds.get("gt"))
        upper = bounds.get("le", bounds.get("lt"))
        if lower is not None and upper is not None:
            return f"{label} between {_fmt(lower)} and {_fmt(upper)}"
        if "ge" in bounds:
            return f"{label} >= {_fmt(bounds['ge'])}"
        if "gt" in bounds:
            return f"{label} > {_fmt(bounds['gt'])}"
        if upper is not None:
            return f"{label} <= {_fmt(upper)}"
        return label

    @classmethod
    def from_payload(cls, raw: Mapping[str, Any]):
        """Validate a decoded request body

        Raises:
            ValidationError: one entry per failing field in ``details``
        """
        try:
            return cls.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise cls._to_validation_error(raw, e) from None

    @classmethod
    def _to_validation_error(cls, raw: Mapping[str, Any], exc: PydanticValidationError) -> ValidationError:
        details = []
        seen = set()
        for error in exc.errors():
            name = str(error["loc"][0]) if error["loc"] else "request"
            if name in seen:
                continue
            seen.add(name)

            value = raw.get(name)
            info = cls.model_fields.get(name)
            if info is not None and info.is_required() and (value is None or value == ""):
                message = f"{name} is required"
            elif error["type"] == "value_error":
                message = f"{name} {error['ctx']['error']}"
            else:
                message = f"{name}: {error['msg']}"

            details.append({
                "field": name,
                "value": _printable(value),
                "expected": cls.expected(name) if info is not None else "valid value",
                "message": message,
            })
        names = ", ".join(detail["field"] for detail in details)
        return ValidationError(f"Invalid value for: {names}", details)

    def supplied(self) -> dict:
        """Fields that carry a value, in declaration order"""
        return self.model_dump(exclude_none=True)


def _printable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_printable(item) for item in value]
    return repr(value)


def serialize_string_array(values: Sequence[str]) -> str:
    """Storage form of a string array: a JSON array, order preserved"""
    return json.dumps(list(values), ensure_ascii=False)


def deserialize_string_array(stored: Optional[str]) -> List[str]:
    if stored is None or stored == "":
        return []
    values = json.loads(stored)
    if not isinstance(values, list):
        raise ValueError(f"Stored value is not a JSON array: {stored!r}")
    return values
