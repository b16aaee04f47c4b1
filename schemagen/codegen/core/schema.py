"""
Core schema representation for code generation.

Holds the normalized, immutable snapshot of record types, embeddable types
and their fields, plus the operation descriptors and extra types supplied by
the endpoint collaborator. Also converts the raw extracted-schema payload
into that snapshot.
"""

import hashlib
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ...logging_config import get_logger
from .naming import pluralize

logger = get_logger(__name__)


class SchemaError(Exception):
    """Input-shape error in a schema snapshot (duplicate or malformed entities)."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        super().__init__(message)
        self.identifier = identifier


class FieldKind(Enum):
    """Kinds of fields consumed by the emitters."""

    SCALAR = "scalar"
    ENUMERATION = "enumeration"
    RELATION_ONE = "relation_one"
    RELATION_MANY = "relation_many"
    EMBEDDED_ONE = "embedded_one"
    EMBEDDED_MANY = "embedded_many"
    DYNAMIC = "dynamic"
    MEDIA = "media"
    PASSTHROUGH = "passthrough"  # Anything the emitters do not understand


class ScalarType(Enum):
    """Primitive attribute types."""

    STRING = "string"
    TEXT = "text"
    RICHTEXT = "richtext"
    EMAIL = "email"
    PASSWORD = "password"
    UID = "uid"
    INTEGER = "integer"
    BIGINTEGER = "biginteger"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    JSON = "json"
    BLOCKS = "blocks"


class RecordKind(Enum):
    """Whether a record type has many instances or at most one."""

    COLLECTION = "collection"
    SINGLETON = "singleton"


@dataclass(frozen=True)
class Field:
    """A single attribute of a record or embeddable type."""

    name: str
    kind: FieldKind
    required: bool = False
    private: bool = False
    nullable: bool = False

    # Kind-specific payload
    scalar: Optional[ScalarType] = None
    enum_values: Tuple[str, ...] = ()
    target: Optional[str] = None
    targets: Tuple[str, ...] = ()
    multiple: bool = False
    raw_type: Optional[str] = None


def _freeze_fields(fields: Mapping[str, Field]) -> Mapping[str, Field]:
    return MappingProxyType(dict(fields))


@dataclass(frozen=True)
class EmbeddableType:
    """A reusable field group, referenced by record types but never queried."""

    uid: str
    fields: Mapping[str, Field] = field(default_factory=dict)
    category: str = ""
    display_name: str = ""
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", _freeze_fields(self.fields))

    def public_fields(self) -> List[Field]:
        """Fields that appear in generated output, in declared order."""
        return [f for f in self.fields.values() if not f.private]


@dataclass(frozen=True)
class RecordType:
    """A top-level entity directly reachable through the access layer."""

    uid: str
    singular_name: str
    plural_name: str
    kind: RecordKind = RecordKind.COLLECTION
    fields: Mapping[str, Field] = field(default_factory=dict)
    display_name: str = ""
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", _freeze_fields(self.fields))

    @property
    def is_singleton(self) -> bool:
        return self.kind == RecordKind.SINGLETON

    def public_fields(self) -> List[Field]:
        """Fields that appear in generated output, in declared order."""
        return [f for f in self.fields.values() if not f.private]


@dataclass(frozen=True)
class SchemaModel:
    """One immutable schema snapshot."""

    records: Mapping[str, RecordType] = field(default_factory=dict)
    embeddables: Mapping[str, EmbeddableType] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "records", MappingProxyType(dict(self.records)))
        object.__setattr__(
            self, "embeddables", MappingProxyType(dict(self.embeddables))
        )

    @classmethod
    def build(
        cls,
        records: Iterable[RecordType] = (),
        embeddables: Iterable[EmbeddableType] = (),
    ) -> "SchemaModel":
        """
        Build a snapshot from entity lists.

        Raises:
            SchemaError: If an identifier repeats within its namespace
        """
        record_map: Dict[str, RecordType] = {}
        for record in records:
            if record.uid in record_map:
                raise SchemaError(
                    f"Duplicate record type identifier: {record.uid}", record.uid
                )
            record_map[record.uid] = record

        embeddable_map: Dict[str, EmbeddableType] = {}
        for embeddable in embeddables:
            if embeddable.uid in embeddable_map:
                raise SchemaError(
                    f"Duplicate embeddable type identifier: {embeddable.uid}",
                    embeddable.uid,
                )
            embeddable_map[embeddable.uid] = embeddable

        return cls(records=record_map, embeddables=embeddable_map)

    def sorted_records(self) -> List[RecordType]:
        return [self.records[uid] for uid in sorted(self.records)]

    def sorted_embeddables(self) -> List[EmbeddableType]:
        return [self.embeddables[uid] for uid in sorted(self.embeddables)]


# Operation descriptors

# Parameter segment of a route path (``:id``)
PATH_PARAM = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*)")

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class OperationTypes:
    """Explicit type expressions attached to an operation by the schema author."""

    body: Optional[str] = None
    response: Optional[str] = None
    params: Optional[str] = None
    query: Optional[str] = None

    def is_empty(self) -> bool:
        return not any((self.body, self.response, self.params, self.query))


@dataclass(frozen=True)
class OperationDescriptor:
    """A non-default access-layer entry."""

    method: str
    path: str
    handler: str
    controller: str
    action: str
    types: Optional[OperationTypes] = None

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())

    @property
    def has_body(self) -> bool:
        return self.method in BODY_METHODS

    @property
    def is_typed(self) -> bool:
        return self.types is not None and not self.types.is_empty()


@dataclass(frozen=True)
class ExtraType:
    """A standalone type shipped with a controller, without an access function."""

    controller: str
    type_name: str
    definition: str


# Conversion from the extracted-schema payload

_SCALAR_ALIASES = {
    "timestamp": ScalarType.DATETIME,
}

_RELATION_MANY = {"onetomany", "manytomany"}
_RELATION_ONE = {"onetoone", "manytoone"}


def _is_skipped_target(target: str) -> bool:
    """Relations to admin and non users-permissions plugin types are not exposed."""
    if target.startswith("admin::"):
        return True
    return target.startswith("plugin::") and "users-permissions" not in target


def convert_attribute(name: str, attr: Mapping[str, Any]) -> Optional[Field]:
    """
    Convert one raw attribute mapping into a Field.

    Args:
        name: Attribute name
        attr: Raw attribute dictionary (``{"type": "string", "required": true}``)

    Returns:
        Field, or None when the attribute is deliberately not exposed
    """
    attr_type = str(attr.get("type", ""))
    common = {
        "name": name,
        "required": bool(attr.get("required", False)),
        "private": bool(attr.get("private", False)),
        "nullable": bool(attr.get("nullable", False)),
    }

    if attr_type == "relation":
        target = str(attr.get("target", ""))
        if _is_skipped_target(target):
            logger.debug("Skipping relation %s -> %s", name, target)
            return None
        relation = re.sub(r"[^a-z]", "", str(attr.get("relation", "")).lower())
        kind = (
            FieldKind.RELATION_MANY if relation in _RELATION_MANY else FieldKind.RELATION_ONE
        )
        if relation and relation not in _RELATION_MANY | _RELATION_ONE:
            logger.debug(
                "Unknown relation type %r on %s, treating as to-one", relation, name
            )
        return Field(kind=kind, target=target, **common)

    if attr_type == "media":
        return Field(kind=FieldKind.MEDIA, multiple=bool(attr.get("multiple", False)), **common)

    if attr_type == "component":
        kind = (
            FieldKind.EMBEDDED_MANY
            if attr.get("repeatable", False)
            else FieldKind.EMBEDDED_ONE
        )
        return Field(kind=kind, target=str(attr.get("component", "")), **common)

    if attr_type == "dynamiczone":
        return Field(
            kind=FieldKind.DYNAMIC,
            targets=tuple(str(c) for c in attr.get("components", []) or []),
            **common,
        )

    if attr_type == "enumeration":
        return Field(
            kind=FieldKind.ENUMERATION,
            enum_values=tuple(str(v) for v in attr.get("enum", []) or []),
            **common,
        )

    scalar = _SCALAR_ALIASES.get(attr_type)
    if scalar is None:
        try:
            scalar = ScalarType(attr_type)
        except ValueError:
            return Field(kind=FieldKind.PASSTHROUGH, raw_type=attr_type or None, **common)
    return Field(kind=FieldKind.SCALAR, scalar=scalar, **common)


def _convert_fields(attributes: Mapping[str, Any]) -> Dict[str, Field]:
    fields = {}
    for attr_name, attr in (attributes or {}).items():
        converted = convert_attribute(attr_name, attr)
        if converted is not None:
            fields[attr_name] = converted
    return fields


def _last_uid_segment(uid: str) -> str:
    tail = uid.split("::", 1)[-1]
    return tail.split(".")[-1] or tail


def convert_extracted_schema(payload: Mapping[str, Any]) -> SchemaModel:
    """
    Convert the extracted-schema payload into a SchemaModel.

    Args:
        payload: Mapping with ``contentTypes`` and ``components`` keyed by uid

    Returns:
        SchemaModel snapshot

    Raises:
        SchemaError: If the payload is malformed or identifiers repeat
    """
    if not isinstance(payload, Mapping):
        raise SchemaError("Schema payload must be a JSON object")

    # Schema responses may wrap the snapshot: {"schema": {...}, "endpoints": [...]}
    if "schema" in payload and "contentTypes" not in payload:
        payload = payload["schema"]

    embeddables = []
    for uid, component in (payload.get("components") or {}).items():
        info = component.get("info") or {}
        embeddables.append(
            EmbeddableType(
                uid=component.get("uid", uid),
                fields=_convert_fields(component.get("attributes", {})),
                category=component.get("category") or uid.split(".")[0],
                display_name=info.get("displayName", ""),
                description=info.get("description"),
            )
        )

    records = []
    for uid, content_type in (payload.get("contentTypes") or {}).items():
        info = content_type.get("info") or {}
        singular = info.get("singularName") or _last_uid_segment(uid)
        plural = info.get("pluralName") or pluralize(singular)
        kind = (
            RecordKind.SINGLETON
            if content_type.get("kind") == "singleType"
            else RecordKind.COLLECTION
        )
        records.append(
            RecordType(
                uid=content_type.get("uid", uid),
                singular_name=singular,
                plural_name=plural,
                kind=kind,
                fields=_convert_fields(content_type.get("attributes", {})),
                display_name=info.get("displayName", ""),
                description=info.get("description"),
            )
        )

    schema = SchemaModel.build(records, embeddables)
    logger.info(
        "Converted schema: %d record types, %d embeddable types",
        len(schema.records),
        len(schema.embeddables),
    )
    return schema


def convert_operations(items: Iterable[Mapping[str, Any]]) -> List[OperationDescriptor]:
    """Convert raw endpoint descriptors into OperationDescriptor objects."""
    operations = []
    for item in items or []:
        handler = str(item.get("handler", ""))
        controller = item.get("controller") or handler.split(".")[0]
        action = item.get("action") or handler.split(".")[-1]
        raw_types = item.get("types")
        types = None
        if raw_types:
            types = OperationTypes(
                body=raw_types.get("body"),
                response=raw_types.get("response"),
                params=raw_types.get("params"),
                query=raw_types.get("query"),
            )
        operations.append(
            OperationDescriptor(
                method=str(item.get("method", "GET")),
                path=str(item.get("path", "/")),
                handler=handler,
                controller=str(controller),
                action=str(action),
                types=types,
            )
        )
    return operations


def convert_extra_types(items: Iterable[Mapping[str, Any]]) -> List[ExtraType]:
    """Convert raw extra type entries into ExtraType objects."""
    return [
        ExtraType(
            controller=str(item.get("controller", "")),
            type_name=str(item.get("typeName", item.get("type_name", ""))),
            definition=str(item.get("typeDefinition", item.get("definition", ""))),
        )
        for item in items or []
    ]


def _field_to_dict(f: Field) -> Dict[str, Any]:
    return {
        "name": f.name,
        "kind": f.kind.value,
        "required": f.required,
        "private": f.private,
        "nullable": f.nullable,
        "scalar": f.scalar.value if f.scalar else None,
        "enum": list(f.enum_values),
        "target": f.target,
        "targets": list(f.targets),
        "multiple": f.multiple,
        "raw_type": f.raw_type,
    }


def schema_fingerprint(
    schema: SchemaModel,
    operations: Iterable[OperationDescriptor] = (),
    extra_types: Iterable[ExtraType] = (),
) -> str:
    """
    Compute a stable sha256 fingerprint of a snapshot.

    Entity order does not affect the result; field order does, since it
    changes the emitted member order.
    """
    canonical = {
        "records": [
            {
                "uid": r.uid,
                "kind": r.kind.value,
                "singular": r.singular_name,
                "plural": r.plural_name,
                "fields": [_field_to_dict(f) for f in r.fields.values()],
            }
            for r in schema.sorted_records()
        ],
        "embeddables": [
            {
                "uid": e.uid,
                "fields": [_field_to_dict(f) for f in e.fields.values()],
            }
            for e in schema.sorted_embeddables()
        ],
        "operations": [
            {
                "method": op.method,
                "path": op.path,
                "handler": op.handler,
                "controller": op.controller,
                "action": op.action,
                "types": (
                    {
                        "body": op.types.body,
                        "response": op.types.response,
                        "params": op.types.params,
                        "query": op.types.query,
                    }
                    if op.types
                    else None
                ),
            }
            for op in operations
        ],
        "extra_types": [
            {"controller": t.controller, "name": t.type_name, "definition": t.definition}
            for t in extra_types
        ],
    }
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()
