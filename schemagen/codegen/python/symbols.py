"""
Declaration identifiers shared by the emitters.

Every entity gets its identifiers assigned up front, so the declaration
emitter and the access-layer emitter agree on names without reading each
other's output.

Only two schema entities deriving the same identifier is fatal. An entity
whose name is taken by the generated package itself is renamed with an
``Entry`` suffix, and an enumeration alias that is already taken gets an
``Enum`` suffix; both are reported as warnings.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ...logging_config import get_logger
from ..core.generator import NameCollisionError
from ..core.naming import declaration_name_for_uid, to_pascal_case
from ..core.schema import EmbeddableType, FieldKind, RecordType, SchemaModel
from .naming import RESERVED_DECLARATION_NAMES

logger = get_logger(__name__)

Entity = Union[RecordType, EmbeddableType]

ENTITY_RENAME_SUFFIX = "Entry"
ENUM_RENAME_SUFFIX = "Enum"


@dataclass(frozen=True)
class EntitySymbols:
    """Identifiers owned by one entity."""

    uid: str
    name: str
    input_name: str
    is_record: bool
    filters_name: Optional[str] = None
    enum_aliases: Mapping[str, str] = field(default_factory=dict)


@dataclass
class SymbolTable:
    """Identifier assignments for one schema snapshot."""

    entities: Dict[str, EntitySymbols] = field(default_factory=dict)
    enums: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def name_for(self, uid: str) -> str:
        """Declaration name for a uid; unknown uids get their derived name."""
        symbols = self.entities.get(uid)
        if symbols is None:
            return declaration_name_for_uid(uid)
        return symbols.name

    def input_name_for(self, uid: str) -> str:
        symbols = self.entities.get(uid)
        if symbols is None:
            return f"{declaration_name_for_uid(uid)}Input"
        return symbols.input_name

    def filters_name_for(self, uid: str) -> str:
        symbols = self.entities.get(uid)
        if symbols is None or symbols.filters_name is None:
            return f"{self.name_for(uid)}Filters"
        return symbols.filters_name

    def enum_alias(self, uid: str, field_name: str) -> Optional[str]:
        symbols = self.entities.get(uid)
        if symbols is None:
            return None
        return symbols.enum_aliases.get(field_name)

    def record_name(self, uid: str) -> Optional[str]:
        """Declaration name of a record type, or None when the snapshot lacks it."""
        symbols = self.entities.get(uid)
        if symbols is None or not symbols.is_record:
            return None
        return symbols.name

    def declared_names(self) -> List[str]:
        """Every identifier the types module defines for entities and enums."""
        names = list(self.enums)
        for symbols in self.entities.values():
            names.extend((symbols.name, symbols.input_name))
            if symbols.filters_name:
                names.append(symbols.filters_name)
        return names


def _ordered_entities(schema: SchemaModel) -> List[Entity]:
    return [*schema.sorted_embeddables(), *schema.sorted_records()]


def _derived_names(name: str, is_record: bool) -> List[str]:
    names = [name, f"{name}Input"]
    if is_record:
        names.append(f"{name}Filters")
    return names


def _entity_name(entity: Entity, reserved: Set[str], warnings: List[str]) -> str:
    name = declaration_name_for_uid(entity.uid)
    if not name.isidentifier():
        name = f"Type{re.sub(r'[^0-9A-Za-z_]', '', name)}"
    is_record = isinstance(entity, RecordType)
    if any(n in reserved for n in _derived_names(name, is_record)):
        renamed = f"{name}{ENTITY_RENAME_SUFFIX}"
        warnings.append(
            f"Declaration name {name!r} of {entity.uid} is used by the generated "
            f"package; declared as {renamed!r}"
        )
        name = renamed
    return name


def _free_alias(alias: str, taken: Mapping[str, str], reserved: Set[str]) -> str:
    """First of ``alias``, ``aliasEnum``, ``aliasEnum2``, ... that nothing uses."""
    if alias not in taken and alias not in reserved:
        return alias
    candidate = f"{alias}{ENUM_RENAME_SUFFIX}"
    counter = 2
    while candidate in taken or candidate in reserved:
        candidate = f"{alias}{ENUM_RENAME_SUFFIX}{counter}"
        counter += 1
    return candidate


def build_symbol_table(
    schema: SchemaModel, reserved_names: Iterable[str] = ()
) -> SymbolTable:
    """
    Assign declaration identifiers for every entity in a snapshot.

    Args:
        schema: Snapshot to name
        reserved_names: Extra names the generated package defines (the
            client class name, for one)

    Raises:
        NameCollisionError: If two entities produce the same identifier
    """
    table = SymbolTable()
    reserved = set(RESERVED_DECLARATION_NAMES) | set(reserved_names)
    owners: Dict[str, str] = {}
    entities = _ordered_entities(schema)

    # Entity declarations first, so enumeration aliases can never take them
    names: Dict[str, str] = {}
    for entity in entities:
        name = _entity_name(entity, reserved, table.warnings)
        for derived in _derived_names(name, isinstance(entity, RecordType)):
            if derived in owners:
                raise NameCollisionError(derived, [owners[derived], entity.uid])
            owners[derived] = entity.uid
        names[entity.uid] = name

    for entity in entities:
        name = names[entity.uid]
        aliases: Dict[str, str] = {}
        for f in entity.public_fields():
            if f.kind != FieldKind.ENUMERATION or not f.enum_values:
                continue
            alias = f"{name}{re.sub(r'[^0-9A-Za-z_]', '', to_pascal_case(f.name))}"
            if owners.get(alias) == entity.uid and table.enums.get(alias) == f.enum_values:
                # Same owner, same values: share the alias
                aliases[f.name] = alias
                continue
            free = _free_alias(alias, owners, reserved)
            if free != alias:
                table.warnings.append(
                    f"Enumeration {entity.uid}.{f.name} would be named {alias!r}, "
                    f"which is taken; declared as {free!r}"
                )
            owners[free] = entity.uid
            table.enums[free] = f.enum_values
            aliases[f.name] = free

        is_record = isinstance(entity, RecordType)
        table.entities[entity.uid] = EntitySymbols(
            uid=entity.uid,
            name=name,
            input_name=f"{name}Input",
            is_record=is_record,
            filters_name=f"{name}Filters" if is_record else None,
            enum_aliases=aliases,
        )

    for warning in table.warnings:
        logger.warning(warning)
    logger.debug(
        "Assigned identifiers for %d entities and %d enumerations",
        len(table.entities),
        len(table.enums),
    )
    return table
