"""
Type declaration emitter.

Renders the ``types`` module of a generated client: one TypedDict per
embeddable and record type, an ``Input`` TypedDict per entity for
create/update payloads, a ``Filters`` TypedDict per record for list
queries, ``Literal`` aliases for enumerations and the payloads of the
authentication API.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...logging_config import get_logger
from ..core.generator import CodeGenerator
from ..core.schema import EmbeddableType, Field, FieldKind, RecordType, SchemaModel
from .config import (
    AUTH_DECLARATIONS,
    AUTH_USER_UID,
    BUILTIN_EXPORTS,
    COMPONENT_TAG,
    FALLBACK_USER_TYPE,
    FILTER_OPERATOR_DECLARATIONS,
    FILTER_SYSTEM_MEMBERS,
    ID_TYPE,
    LOGICAL_FILTER_MEMBERS,
    MEDIA_ID_TYPE,
    RECORD_SYSTEM_MEMBERS,
    UNKNOWN_TYPE,
    get_filter_type,
    get_python_type,
    get_required_imports,
)
from .naming import is_safe_key
from .symbols import SymbolTable, build_symbol_table

logger = get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _quote(expression: str, forward: bool) -> str:
    """Quote the whole expression when it names a schema declaration."""
    return f'"{expression}"' if forward else expression


def _members(pairs: Iterable[Tuple[str, str]]) -> List[Dict[str, str]]:
    return [{"key": key, "type": t} for key, t in pairs]


class TypeDeclarationEmitter(CodeGenerator):
    """Emits the TypedDict declarations for one schema snapshot."""

    def __init__(self, add_comments: bool = True, emit_auth: bool = True):
        super().__init__(add_comments=add_comments)
        self.emit_auth = emit_auth

    @property
    def module_name(self) -> str:
        return "types.py"

    def get_template_directory(self) -> Path:
        return TEMPLATE_DIR

    def emit(self, schema: SchemaModel, symbols: Optional[SymbolTable] = None) -> str:
        """
        Render the declarations module.

        Args:
            schema: Snapshot to declare
            symbols: Identifier assignments shared with the access layer

        Returns:
            Module source text

        Raises:
            NameCollisionError: If two entities produce the same identifier
        """
        self.warnings = []
        symbols = symbols or build_symbol_table(schema)

        operators = [
            self._declaration(name, _members(members), total=False, entity=None)
            for name, members in FILTER_OPERATOR_DECLARATIONS
        ]

        declarations = []
        entities: List[Any] = [*schema.sorted_embeddables(), *schema.sorted_records()]
        for entity in entities:
            declarations.append(self._base_declaration(entity, symbols))
            declarations.append(self._input_declaration(entity, symbols))
            if isinstance(entity, RecordType):
                declarations.append(self._filters_declaration(entity, symbols))

        auth = self._auth_declarations(symbols) if self.emit_auth else []

        enums = [
            {"name": alias, "values": list(values)}
            for alias, values in symbols.enums.items()
        ]

        member_types = [
            m["type"] for d in [*declarations, *auth] for m in d["members"]
        ]
        typing_imports = sorted(
            set(get_required_imports(member_types))
            | {"Any", "NotRequired", "TypeAlias", "TypedDict"}
            | ({"Literal"} if enums else set())
        )

        exports = list(BUILTIN_EXPORTS)
        exports.extend(d["name"] for d in operators)
        exports.extend(e["name"] for e in enums)
        exports.extend(d["name"] for d in declarations)
        exports.extend(d["name"] for d in auth)

        logger.debug(
            "Emitting %d declarations and %d enumerations",
            len(declarations),
            len(enums),
        )
        return self.render_template(
            "types.py.j2",
            {
                "typing_imports": typing_imports,
                "exports": exports,
                "operators": operators,
                "enums": enums,
                "declarations": declarations,
                "auth_declarations": auth,
                "add_comments": self.add_comments,
            },
        )

    # Declarations

    def _base_declaration(self, entity: Any, symbols: SymbolTable) -> Dict[str, Any]:
        members: List[Dict[str, str]] = []
        if isinstance(entity, RecordType):
            members.extend({"key": key, "type": t} for key, t in RECORD_SYSTEM_MEMBERS)
        else:
            members.append({"key": "id", "type": "int"})
            members.append(
                {"key": COMPONENT_TAG, "type": f'Literal["{entity.uid}"]'}
            )

        owner = symbols.name_for(entity.uid)
        for f in entity.public_fields():
            expression, forward = self._field_type(entity.uid, owner, f, symbols)
            if f.nullable:
                expression = f"{expression} | None"
            annotation = _quote(expression, forward)
            if not f.required:
                annotation = f"NotRequired[{annotation}]"
            members.append({"key": f.name, "type": annotation})

        return self._declaration(owner, members, total=True, entity=entity)

    def _input_declaration(self, entity: Any, symbols: SymbolTable) -> Dict[str, Any]:
        members: List[Dict[str, str]] = []
        if isinstance(entity, EmbeddableType):
            members.append(
                {"key": COMPONENT_TAG, "type": f'Literal["{entity.uid}"]'}
            )

        owner = symbols.name_for(entity.uid)
        for f in entity.public_fields():
            expression, forward = self._input_type(entity.uid, f, symbols)
            members.append({"key": f.name, "type": _quote(expression, forward)})

        declaration = self._declaration(
            symbols.input_name_for(entity.uid), members, total=False, entity=None
        )
        if self.add_comments:
            declaration["description"] = f"Payload for creating or updating {owner}."
        return declaration

    def _filters_declaration(
        self, record: RecordType, symbols: SymbolTable
    ) -> Dict[str, Any]:
        name = symbols.filters_name_for(record.uid)
        members = _members(FILTER_SYSTEM_MEMBERS)
        for f in record.public_fields():
            expression = self._filter_type(record.uid, f, symbols)
            if expression is not None:
                members.append({"key": f.name, "type": expression})
        members.extend(
            {"key": key, "type": _quote(t.format(name=name), True)}
            for key, t in LOGICAL_FILTER_MEMBERS
        )
        declaration = self._declaration(name, members, total=False, entity=None)
        if self.add_comments:
            declaration["description"] = (
                f"Query filters accepted when listing {symbols.name_for(record.uid)}."
            )
        return declaration

    def _filter_type(self, uid: str, f: Field, symbols: SymbolTable) -> Optional[str]:
        """Filter expression for a field, or None when the field cannot be filtered."""
        if f.kind == FieldKind.SCALAR:
            return get_filter_type(f.scalar)
        if f.kind == FieldKind.ENUMERATION:
            alias = symbols.enum_alias(uid, f.name)
            return f"{alias or 'str'} | StringFilterOperators"
        if f.kind in (FieldKind.RELATION_ONE, FieldKind.RELATION_MANY):
            if symbols.record_name(f.target) is None:
                return UNKNOWN_TYPE
            return _quote(symbols.filters_name_for(f.target), True)
        if f.kind == FieldKind.MEDIA:
            return "MediaFilters"
        return None

    def _auth_declarations(self, symbols: SymbolTable) -> List[Dict[str, Any]]:
        user = symbols.record_name(AUTH_USER_UID) or FALLBACK_USER_TYPE
        return [
            self._declaration(
                name,
                [{"key": key, "type": t.format(user=user)} for key, t in members],
                total=True,
                entity=None,
            )
            for name, members in AUTH_DECLARATIONS
        ]

    def _declaration(
        self,
        name: str,
        members: List[Dict[str, str]],
        total: bool,
        entity: Optional[Any],
    ) -> Dict[str, Any]:
        description = None
        if self.add_comments and entity is not None:
            description = entity.description or entity.display_name or None
        return {
            "name": name,
            "members": members,
            "total": total,
            "functional": not all(is_safe_key(m["key"]) for m in members),
            "description": description,
        }

    # Field types

    def _field_type(
        self, uid: str, owner: str, f: Field, symbols: SymbolTable
    ) -> Tuple[str, bool]:
        """Return the type expression for a field and whether it names a declaration."""
        if f.kind == FieldKind.SCALAR:
            return get_python_type(f.scalar), False

        if f.kind == FieldKind.ENUMERATION:
            alias = symbols.enum_alias(uid, f.name)
            if alias is None:
                self.warn(f"Enumeration {owner}.{f.name} has no values; typed as str")
                return "str", False
            return alias, False

        if f.kind in (FieldKind.RELATION_ONE, FieldKind.EMBEDDED_ONE):
            return symbols.name_for(f.target), True

        if f.kind in (FieldKind.RELATION_MANY, FieldKind.EMBEDDED_MANY):
            return f"list[{symbols.name_for(f.target)}]", True

        if f.kind == FieldKind.DYNAMIC:
            if not f.targets:
                self.warn(f"Dynamic field {owner}.{f.name} allows no types")
                return "list[JsonValue]", False
            union = " | ".join(symbols.name_for(t) for t in f.targets)
            return f"list[{union}]", True

        if f.kind == FieldKind.MEDIA:
            return ("list[MediaFile]" if f.multiple else "MediaFile"), False

        self.warn(
            f"Field {owner}.{f.name} has unsupported type {f.raw_type!r}; typed as Any"
        )
        return UNKNOWN_TYPE, False

    def _input_type(self, uid: str, f: Field, symbols: SymbolTable) -> Tuple[str, bool]:
        """Type expression of a field inside a create/update payload."""
        if f.kind == FieldKind.RELATION_ONE:
            return f"{ID_TYPE} | None", False
        if f.kind == FieldKind.RELATION_MANY:
            return f"list[{ID_TYPE}]", False
        if f.kind == FieldKind.MEDIA:
            if f.multiple:
                return f"list[{MEDIA_ID_TYPE}]", False
            return f"{MEDIA_ID_TYPE} | None", False
        if f.kind == FieldKind.EMBEDDED_ONE:
            return f"{symbols.input_name_for(f.target)} | None", True
        if f.kind == FieldKind.EMBEDDED_MANY:
            return f"list[{symbols.input_name_for(f.target)}]", True
        if f.kind == FieldKind.DYNAMIC and f.targets:
            union = " | ".join(symbols.input_name_for(t) for t in f.targets)
            return f"list[{union}]", True
        if f.kind == FieldKind.SCALAR:
            expression = get_python_type(f.scalar)
        elif f.kind == FieldKind.ENUMERATION:
            expression = symbols.enum_alias(uid, f.name) or "str"
        elif f.kind == FieldKind.DYNAMIC:
            expression = "list[JsonValue]"
        else:
            expression = UNKNOWN_TYPE
        if f.nullable:
            expression = f"{expression} | None"
        return expression, False
