"""Tool argument schemas.

An argument schema is a tree of field descriptors. The same tree produces the
JSON Schema document returned by ``tools/list`` and the pydantic model used to
validate ``tools/call`` arguments.

Every descriptor carries a ``kind`` tag; translation and validation look the
tag up in a table with one function per kind.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Annotated, Any, Callable, ClassVar, Dict, List, Literal, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, StrictBool, StrictFloat, StrictInt, StrictStr, ValidationError, create_model
from pydantic import Field as ModelField


@dataclass(frozen=True, kw_only=True)
class FieldSpec:
    """Base field descriptor."""
    kind: ClassVar[str] = "unknown"
    description: Optional[str] = None
    optional: bool = False
    nullable: bool = False


@dataclass(frozen=True, kw_only=True)
class StringField(FieldSpec):
    kind: ClassVar[str] = "string"


@dataclass(frozen=True, kw_only=True)
class NumberField(FieldSpec):
    """Numeric field; ``integer=True`` restricts it to whole values."""
    kind: ClassVar[str] = "number"
    integer: bool = False
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    exclusive_minimum: Optional[float] = None


@dataclass(frozen=True, kw_only=True)
class BooleanField(FieldSpec):
    kind: ClassVar[str] = "boolean"


@dataclass(frozen=True, kw_only=True)
class EnumField(FieldSpec):
    kind: ClassVar[str] = "enum"
    values: Tuple[str, ...]


@dataclass(frozen=True, kw_only=True)
class ArrayField(FieldSpec):
    kind: ClassVar[str] = "array"
    items: FieldSpec


@dataclass(frozen=True, kw_only=True)
class UnionField(FieldSpec):
    kind: ClassVar[str] = "union"
    options: Tuple[FieldSpec, ...]


@dataclass(frozen=True, kw_only=True)
class ObjectField(FieldSpec):
    kind: ClassVar[str] = "object"
    properties: Mapping[str, FieldSpec] = field(default_factory=dict)


def optional(spec: FieldSpec) -> FieldSpec:
    """Return a copy of ``spec`` marked optional."""
    return replace(spec, optional=True)


# --- JSON Schema translation ---

def _with_description(document: Dict[str, Any], spec: FieldSpec) -> Dict[str, Any]:
    if spec.description is not None:
        document["description"] = spec.description
    return document


def _string_schema(spec: StringField) -> Dict[str, Any]:
    return _with_description({"type": "string"}, spec)


def _number_schema(spec: NumberField) -> Dict[str, Any]:
    return _with_description({"type": "integer" if spec.integer else "number"}, spec)


def _boolean_schema(spec: BooleanField) -> Dict[str, Any]:
    return _with_description({"type": "boolean"}, spec)


def _enum_schema(spec: EnumField) -> Dict[str, Any]:
    return _with_description({"type": "string", "enum": list(spec.values)}, spec)


def _array_schema(spec: ArrayField) -> Dict[str, Any]:
    return _with_description({"type": "array", "items": translate_field(spec.items)}, spec)


def _union_schema(spec: UnionField) -> Dict[str, Any]:
    return _with_description({"oneOf": [translate_field(option) for option in spec.options]}, spec)


def _object_schema(spec: ObjectField) -> Dict[str, Any]:
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for name, child in spec.properties.items():
        properties[name] = translate_field(child)
        if not child.optional:
            required.append(name)

    document: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        document["required"] = required
    return _with_description(document, spec)


_SCHEMA_TRANSLATORS: Dict[str, Callable[[Any], Dict[str, Any]]] = {
    StringField.kind: _string_schema,
    NumberField.kind: _number_schema,
    BooleanField.kind: _boolean_schema,
    EnumField.kind: _enum_schema,
    ArrayField.kind: _array_schema,
    UnionField.kind: _union_schema,
    ObjectField.kind: _object_schema,
}


def translate_field(spec: FieldSpec) -> Dict[str, Any]:
    """Translate a single field descriptor. Unknown kinds become plain strings."""
    translator = _SCHEMA_TRANSLATORS.get(getattr(spec, "kind", None))
    if translator is None:
        return {"type": "string"}
    return translator(spec)


def to_json_schema(schema: ObjectField) -> Dict[str, Any]:
    """Build the discovery document for a tool's argument schema."""
    return _object_schema(schema)


# --- Argument validation ---

class ArgumentValidationError(ValueError):
    """Arguments do not satisfy the tool's schema."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []


_MODEL_CONFIG = ConfigDict(extra="ignore")


def _model_name(name: str) -> str:
    return re.sub(r"\W", "_", name) or "Arguments"


def _whole_number(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _number_type(spec: NumberField, name: str) -> Any:
    constraints = ModelField(ge=spec.minimum, le=spec.maximum, gt=spec.exclusive_minimum)
    if spec.integer:
        # 2023.0 counts as an integer; "2023" and 2023.5 do not
        return Annotated[StrictInt, constraints, BeforeValidator(_whole_number)]
    return Union[Annotated[StrictInt, constraints], Annotated[StrictFloat, constraints]]


def _enum_type(spec: EnumField, name: str) -> Any:
    if not spec.values:
        return StrictStr
    return Literal[tuple(spec.values)]


def _array_type(spec: ArrayField, name: str) -> Any:
    return List[field_type(spec.items, f"{name}_item")]


def _union_type(spec: UnionField, name: str) -> Any:
    members = tuple(field_type(option, f"{name}_{i}") for i, option in enumerate(spec.options))
    if not members:
        return Any
    return Union[members]


def _object_type(spec: ObjectField, name: str) -> Type[BaseModel]:
    definitions: Dict[str, Any] = {}
    for i, (key, child) in enumerate(spec.properties.items()):
        annotation = field_type(child, f"{name}_{key}")
        if child.nullable:
            annotation = Optional[annotation]
        default = None if child.optional else ...
        # Aliases keep arbitrary argument names clear of BaseModel attributes.
        definitions[f"field_{i}"] = (annotation, ModelField(default, alias=key))
    return create_model(_model_name(name), __config__=_MODEL_CONFIG, **definitions)


_VALIDATION_TYPES: Dict[str, Callable[[Any, str], Any]] = {
    StringField.kind: lambda spec, name: StrictStr,
    NumberField.kind: _number_type,
    BooleanField.kind: lambda spec, name: StrictBool,
    EnumField.kind: _enum_type,
    ArrayField.kind: _array_type,
    UnionField.kind: _union_type,
    ObjectField.kind: _object_type,
}


def field_type(spec: FieldSpec, name: str = "Arguments") -> Any:
    """Python annotation used to validate values of ``spec``."""
    builder = _VALIDATION_TYPES.get(getattr(spec, "kind", None))
    if builder is None:
        return Any
    return builder(spec, name)


def _format_errors(error: ValidationError) -> List[Dict[str, str]]:
    return [
        {
            "path": ".".join(str(part) for part in item["loc"]) or "(arguments)",
            "message": item["msg"],
        }
        for item in error.errors()
    ]


class ArgumentValidator:
    """Validates tool arguments against an ``ObjectField`` schema."""

    def __init__(self, schema: ObjectField, name: str = "Arguments"):
        self.schema = schema
        self.model = _object_type(schema, name)

    def validate(self, arguments: Any) -> Dict[str, Any]:
        """Return validated arguments, omitting optional fields that were not given.

        Raises:
            ArgumentValidationError: listing every violation as ``path: message``
        """
        try:
            instance = self.model.model_validate(arguments)
        except ValidationError as e:
            errors = _format_errors(e)
            message = "; ".join(f"{item['path']}: {item['message']}" for item in errors)
            raise ArgumentValidationError(message, errors) from e
        return instance.model_dump(by_alias=True, exclude_unset=True)
