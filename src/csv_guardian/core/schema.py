from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import (
    Annotated,
    Any,
    Dict,
    FrozenSet,
    Generic,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel, TypeAdapter, ValidationError

T = TypeVar("T")
RawRow = Dict[str, Optional[str]]

_ARRAY_ORIGINS = (list, set, frozenset)


# -- Schema description: tagged variants walked by the field-name visitor.


@dataclass(frozen=True)
class LeafNode:
    """A scalar (or otherwise opaque) field type."""

    annotation: Any = None


@dataclass(frozen=True)
class OptionalNode:
    """A field that may be left out because it declares a default."""

    inner: "SchemaNode"


@dataclass(frozen=True)
class NullableNode:
    """``X | None``."""

    inner: "SchemaNode"


@dataclass(frozen=True)
class ArrayNode:
    """``list[X]``, ``set[X]`` or ``tuple[X, ...]``; describes the element type."""

    inner: "SchemaNode"


@dataclass(frozen=True)
class RefinedNode:
    """``Annotated[X, ...]`` carrying validators or constraints around ``X``."""

    inner: "SchemaNode"
    metadata: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ObjectNode:
    """A pydantic model: ordered ``(csv_name, node)`` pairs."""

    name: str
    fields: Tuple[Tuple[str, "SchemaNode"], ...] = ()


SchemaNode = Union[LeafNode, OptionalNode, NullableNode, ArrayNode, RefinedNode, ObjectNode]
_WRAPPERS = (OptionalNode, NullableNode, ArrayNode, RefinedNode)


def describe(annotation: Any) -> SchemaNode:
    """Build the tagged description of a pydantic-compatible type."""
    return _describe(annotation, frozenset())


def _describe(annotation: Any, seen: FrozenSet[type]) -> SchemaNode:
    origin = get_origin(annotation)

    if origin is Annotated:
        inner, *metadata = get_args(annotation)
        return RefinedNode(_describe(inner, seen), tuple(metadata))

    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1 and len(members) < len(get_args(annotation)):
            return NullableNode(_describe(members[0], seen))
        return LeafNode(annotation)

    if origin in _ARRAY_ORIGINS:
        args = get_args(annotation)
        return ArrayNode(_describe(args[0], seen)) if args else LeafNode(annotation)

    if origin is tuple:
        args = get_args(annotation)
        if len(args) == 2 and args[1] is Ellipsis:
            return ArrayNode(_describe(args[0], seen))
        return LeafNode(annotation)

    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        if annotation in seen:
            return LeafNode(annotation)
        nested_seen = seen | {annotation}
        fields: List[Tuple[str, SchemaNode]] = []
        for attr_name, info in annotation.model_fields.items():
            node = _describe(info.annotation, nested_seen)
            if info.metadata:
                node = RefinedNode(node, tuple(info.metadata))
            if not info.is_required():
                node = OptionalNode(node)
            fields.append((_csv_name(attr_name, info), node))
        return ObjectNode(annotation.__name__, tuple(fields))

    return LeafNode(annotation)


def _csv_name(attr_name: str, info: Any) -> str:
    if isinstance(info.validation_alias, str):
        return info.validation_alias
    if isinstance(info.alias, str):
        return info.alias
    return attr_name


# -- Visitor


@dataclass(frozen=True)
class FieldPath:
    """Location of one CSV column inside the (possibly nested) record."""

    segments: Tuple[str, ...]
    # one flag per parent segment: the value under that key is a list of objects
    arrays: Tuple[bool, ...] = ()

    @property
    def name(self) -> str:
        return ".".join(self.segments)


def field_paths(node: SchemaNode) -> List[FieldPath]:
    if isinstance(node, ObjectNode):
        paths: List[FieldPath] = []
        for key, child in node.fields:
            nested = field_paths(child)
            if not nested:
                paths.append(FieldPath((key,)))
                continue
            in_array = _passes_through_array(child)
            paths.extend(FieldPath((key, *p.segments), (in_array, *p.arrays)) for p in nested)
        return paths
    if isinstance(node, _WRAPPERS):
        return field_paths(node.inner)
    return []


def field_names(node: SchemaNode) -> List[str]:
    """Ordered CSV column names declared by ``node``; unsupported shapes give ``[]``."""
    return [path.name for path in field_paths(node)]


def _passes_through_array(node: SchemaNode) -> bool:
    while isinstance(node, _WRAPPERS):
        if isinstance(node, ArrayNode):
            return True
        node = node.inner
    return False


# -- Validation


@dataclass(frozen=True)
class RowValidation(Generic[T]):
    """Outcome of validating one raw row."""

    success: bool
    value: Optional[T] = None
    error: Optional[ValidationError] = None


@dataclass
class RecordSchema(Generic[T]):
    """
    Adapter between CSV rows and a pydantic schema.

    ``schema`` is a ``BaseModel`` subclass or any type accepted by
    ``pydantic.TypeAdapter`` (for example ``Annotated[Model, AfterValidator(fn)]``).
    """

    schema: Any
    _adapter: TypeAdapter[Any] = field(init=False, repr=False)
    _paths: List[FieldPath] = field(init=False, repr=False)
    _nested: bool = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._adapter = TypeAdapter(self.schema)
        self._paths = [
            FieldPath(tuple(segment.strip() for segment in path.segments), path.arrays)
            for path in field_paths(describe(self.schema))
        ]
        self._nested = any(len(path.segments) > 1 for path in self._paths)

    @property
    def name(self) -> str:
        return getattr(self.schema, "__name__", None) or str(self.schema)

    @property
    def field_names(self) -> List[str]:
        return [path.name for path in self._paths]

    def build_row(self, cells: Sequence[str]) -> RawRow:
        """Pair cells with field names by position; missing cells become ``None``."""
        row: RawRow = {}
        for index, name in enumerate(self.field_names):
            cell = cells[index] if index < len(cells) else None
            row[name] = cell.strip() if cell else cell
        return row

    def validate(self, row: Mapping[str, Optional[str]]) -> RowValidation[T]:
        try:
            value = self._adapter.validate_python(self._candidate(row))
        except ValidationError as exc:
            return RowValidation(False, error=exc)
        return RowValidation(True, value=value)

    def _candidate(self, row: Mapping[str, Optional[str]]) -> Dict[str, Any]:
        # absent cells are left out so pydantic applies defaults / reports "missing"
        if not self._nested:
            return {key: value for key, value in row.items() if value is not None}

        candidate: Dict[str, Any] = {}
        for path in self._paths:
            value = row.get(path.name)
            if value is None:
                continue
            target = candidate
            for key, is_array in zip(path.segments[:-1], path.arrays):
                if is_array:
                    target = target.setdefault(key, [{}])[0]
                else:
                    target = target.setdefault(key, {})
            target[path.segments[-1]] = value
        return candidate


def as_record_schema(schema: Any) -> RecordSchema[Any]:
    if isinstance(schema, RecordSchema):
        return schema
    return RecordSchema(schema)


def error_issues(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten a pydantic error into ``{path, message, type}`` issues."""
    return [
        {
            "path": ".".join(str(part) for part in issue["loc"]),
            "message": issue["msg"],
            "type": issue["type"],
        }
        for issue in error.errors(include_url=False)
    ]
