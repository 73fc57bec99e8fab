"""
Entity, property and schema descriptions for site-backed data.

An [Entity][snapweb.data.entity.Entity] describes one kind of record: an
ordered list of [Property][snapweb.data.entity.Property] definitions, one
of which is the primary key. Entities serialize to JSON so that a site can
store them as ``/<name>.table`` files.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from snapweb.models._validation import validate_identifier


if TYPE_CHECKING:
    from snapweb.core.file import WebFile
    from snapweb.core.site import WebSite


class PropertyType(StrEnum):
    """Value type of a [Property][snapweb.data.entity.Property]."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    RELATION = "relation"


_TRUE_STRINGS = frozenset({"true", "yes", "1", "on"})


@dataclass(slots=True)
class Property:
    """One named, typed column of an entity.

    Relations hold rows of ``relation_entity_name``: a single row, or a
    list of rows when ``to_many`` is set.

    Attributes:
        name: Column name (an ASCII identifier).
        type: Value type.
        primary: Whether this is the entity's primary key.
        private: Hidden from generic displays.
        relation_entity_name: Target entity of a relation.
        to_many: Relation holds a list of rows.
        auto_generated: Primary value assigned by the backend on first save.
        derived: Computed by the application and never persisted.
    """

    name: str
    type: PropertyType = PropertyType.STRING
    primary: bool = False
    private: bool = False
    relation_entity_name: str | None = None
    to_many: bool = False
    auto_generated: bool = False
    derived: bool = False
    entity: Entity | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        validate_identifier(self.name, "Property name")
        self.type = PropertyType(self.type)
        if self.type is PropertyType.RELATION and not self.relation_entity_name:
            raise ValueError(f"Relation property {self.name} needs relation_entity_name")

    @property
    def is_relation(self) -> bool:
        return self.type is PropertyType.RELATION

    def get_relation_entity(self) -> Entity | None:
        """Resolve the target entity through the owning schema."""
        if not self.is_relation or self.entity is None or self.entity.schema is None:
            return None
        return self.entity.schema.get_entity(self.relation_entity_name or "")

    def convert_value(self, value: Any) -> Any:
        """Coerce a stored or parsed *value* to this property's type.

        Empty strings become ``None``. Relations are returned unchanged.
        """
        if value is None or value == "":
            return None
        if self.type is PropertyType.NUMBER and isinstance(value, str):
            number = float(value)
            return int(number) if number.is_integer() and "." not in value else number
        if self.type is PropertyType.BOOLEAN and isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        if self.type in (PropertyType.STRING, PropertyType.DATE) and not isinstance(value, str):
            return str(value)
        return value

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "entity" or value is None or value is False:
                continue
            data[f.name] = str(value) if f.name == "type" else value
        return data


class Entity:
    """A named, ordered collection of properties with a primary key.

    Attributes:
        name: Entity name (an ASCII identifier).
        schema: The owning [Schema][snapweb.data.entity.Schema], once added.
        exists: Whether the entity is stored in its site.
        source_file: The file the entity was read from or saved to.
    """

    def __init__(self, name: str, properties: list[Property] | None = None) -> None:
        validate_identifier(name, "Entity name")
        self.name = name
        self.schema: Schema | None = None
        self.exists = False
        self.source_file: WebFile | None = None
        self._properties: list[Property] = []
        for prop in properties or []:
            self.add_property(prop)

    def __repr__(self) -> str:
        return f"Entity({self.name!r}, properties={[p.name for p in self._properties]})"

    @property
    def properties(self) -> list[Property]:
        return list(self._properties)

    def add_property(self, prop: Property) -> Property:
        """Append *prop*, replacing any property with the same name."""
        self.remove_property(prop.name)
        prop.entity = self
        self._properties.append(prop)
        return prop

    def remove_property(self, name: str) -> Property | None:
        for index, prop in enumerate(self._properties):
            if prop.name == name:
                prop.entity = None
                return self._properties.pop(index)
        return None

    def get_property(self, name: str) -> Property | None:
        for prop in self._properties:
            if prop.name == name:
                return prop
        return None

    @property
    def primary(self) -> Property | None:
        for prop in self._properties:
            if prop.primary:
                return prop
        return None

    @property
    def site(self) -> WebSite | None:
        return self.schema.site if self.schema is not None else None

    # --- Serialization ---

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "properties": [p.to_dict() for p in self._properties]}

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), indent=2).encode("utf-8")

    def load_bytes(self, data: bytes) -> None:
        """Replace this entity's properties with the ones encoded in *data*.

        Raises:
            ValueError: If *data* is not a JSON entity description.
        """
        try:
            payload = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid entity data for {self.name}: {e}") from e
        if not isinstance(payload, dict) or not isinstance(payload.get("properties"), list):
            raise ValueError(f"Invalid entity data for {self.name}: missing properties")
        for prop in self._properties:
            prop.entity = None
        self._properties = []
        for item in payload["properties"]:
            self.add_property(Property(**item))

    @classmethod
    def from_bytes(cls, data: bytes, name: str | None = None) -> Entity:
        """Build an entity from JSON *data*, named by *name* or by the payload."""
        payload_name = name
        if payload_name is None:
            payload_name = json.loads(data.decode("utf-8")).get("name", "")
        entity = cls(payload_name)
        entity.load_bytes(data)
        return entity


class Schema:
    """The entities of one site.

    Lookups that miss the local collection are delegated to the site, so
    relation targets resolve even before they were loaded explicitly.
    """

    def __init__(self, name: str, site: WebSite | None = None) -> None:
        self.name = name
        self.site = site
        self._entities: dict[str, Entity] = {}

    def __repr__(self) -> str:
        return f"Schema({self.name!r}, entities={list(self._entities)})"

    @property
    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    def add_entity(self, entity: Entity) -> None:
        entity.schema = self
        self._entities[entity.name] = entity

    def remove_entity(self, entity: Entity) -> None:
        if self._entities.get(entity.name) is entity:
            del self._entities[entity.name]

    def get_entity(self, name: str) -> Entity | None:
        entity = self._entities.get(name)
        if entity is None and self.site is not None:
            entity = self.site.get_entity(name)
        return entity
