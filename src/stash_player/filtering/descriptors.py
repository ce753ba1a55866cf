"""Field descriptor registry: which fields each entity list can filter and sort on.

The tables mirror the Stash filter inputs (``SceneFilterType``,
``PerformerFilterType``, ``StudioFilterType``, ``TagFilterType``). UI and URL
code address fields by ``key``; the serializer talks to Stash using ``field``
and ``sort_field``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, model_validator

from stash_player.filtering.values import SortSpec
from stash_player.shared.enums import EntityType, FieldKind, SortDirection
from stash_player.shared.exceptions import NotSortable, UnknownEntityType, UnknownFieldKey


class FieldDescriptor(BaseModel):
    """One filterable and/or sortable attribute of an entity type.

    ``integer`` marks numeric ranges backed by Stash integer criteria; their
    bounds must be whole numbers after ``scale`` is applied. ``timestamp``
    marks date ranges over timestamp columns, which are queried with explicit
    times of day rather than bare dates.
    """

    model_config = {"frozen": True}

    key: str
    field: str
    kind: FieldKind
    label: str = ""
    sortable: bool = False
    sort_field: str | None = None
    enum_values: tuple[str, ...] = ()
    scale: int = 1
    integer: bool = True
    timestamp: bool = False

    @model_validator(mode="after")
    def _check_options(self) -> FieldDescriptor:
        if self.kind is FieldKind.SELECT and not self.enum_values:
            raise ValueError(f"select field {self.key!r} needs enum_values")
        if self.kind is not FieldKind.SELECT and self.enum_values:
            raise ValueError(f"{self.kind.value} field {self.key!r} cannot have enum_values")
        if self.scale < 1:
            raise ValueError(f"field {self.key!r} scale must be >= 1")
        if self.timestamp and self.kind is not FieldKind.DATE_RANGE:
            raise ValueError(f"only date ranges can be timestamps, not {self.key!r}")
        return self

    @property
    def upstream_sort(self) -> str:
        return self.sort_field or self.field


def resolve_entity_type(value: EntityType | str) -> EntityType:
    """Accept an ``EntityType`` or its value (case-insensitive)."""
    if isinstance(value, EntityType):
        return value
    try:
        return EntityType(str(value).lower())
    except ValueError as exc:
        raise UnknownEntityType(f"unknown entity type: {value!r}") from exc


class DescriptorRegistry:
    """Read-only lookup of field descriptors per entity type."""

    def __init__(
        self,
        tables: Mapping[EntityType, Iterable[FieldDescriptor]],
        default_sorts: Mapping[EntityType, SortSpec] | None = None,
    ) -> None:
        self._tables: dict[EntityType, tuple[FieldDescriptor, ...]] = {}
        self._index: dict[EntityType, dict[str, FieldDescriptor]] = {}
        for entity_type, descriptors in tables.items():
            ordered = tuple(descriptors)
            index: dict[str, FieldDescriptor] = {}
            for descriptor in ordered:
                if descriptor.key in index:
                    raise ValueError(f"duplicate field key {descriptor.key!r} for {entity_type.value}")
                index[descriptor.key] = descriptor
            self._tables[entity_type] = ordered
            self._index[entity_type] = index

        self._default_sorts: dict[EntityType, SortSpec] = {}
        for entity_type, spec in (default_sorts or {}).items():
            descriptor = self._index.get(entity_type, {}).get(spec.key)
            if descriptor is None or not descriptor.sortable:
                raise ValueError(f"default sort {spec.key!r} is not a sortable {entity_type.value} field")
            self._default_sorts[entity_type] = spec

    @property
    def entity_types(self) -> tuple[EntityType, ...]:
        return tuple(self._tables)

    def get_descriptors(self, entity_type: EntityType | str) -> tuple[FieldDescriptor, ...]:
        """Return the ordered descriptors for *entity_type*.

        Raises:
            UnknownEntityType: If the registry has no table for it.
        """
        resolved = resolve_entity_type(entity_type)
        try:
            return self._tables[resolved]
        except KeyError as exc:
            raise UnknownEntityType(f"no descriptors registered for {resolved.value}") from exc

    def get(self, entity_type: EntityType | str, key: str) -> FieldDescriptor:
        """Return the descriptor for *key*, raising ``UnknownFieldKey`` if absent."""
        resolved = resolve_entity_type(entity_type)
        self.get_descriptors(resolved)
        try:
            return self._index[resolved][key]
        except KeyError as exc:
            raise UnknownFieldKey(f"{resolved.value} has no field {key!r}") from exc

    def sortable(self, entity_type: EntityType | str, key: str) -> FieldDescriptor:
        """Return the descriptor for *key*, raising ``NotSortable`` if it cannot sort."""
        descriptor = self.get(entity_type, key)
        if not descriptor.sortable:
            raise NotSortable(f"{key!r} is not sortable")
        return descriptor

    def default_sort(self, entity_type: EntityType | str) -> SortSpec:
        """Canonical sort used when a state has none: newest first."""
        resolved = resolve_entity_type(entity_type)
        self.get_descriptors(resolved)
        return self._default_sorts.get(resolved, SortSpec(key="createdAt", direction=SortDirection.DESC))


# ── Standard tables ─────────────────────────────────────────────

# Id-list field that scopes a scene list to one performer, studio or tag.
SCENE_SCOPES = {
    EntityType.PERFORMER: "performers",
    EntityType.STUDIO: "studios",
    EntityType.TAG: "tags",
}

RESOLUTION_OPTIONS = ("STANDARD_HD", "FULL_HD", "QUAD_HD", "FOUR_K")
GENDER_OPTIONS = ("MALE", "FEMALE", "TRANSGENDER_MALE", "TRANSGENDER_FEMALE", "INTERSEX", "NON_BINARY")
ETHNICITY_OPTIONS = ("CAUCASIAN", "BLACK", "ASIAN", "INDIAN", "LATIN", "MIDDLE_EASTERN", "MIXED", "OTHER")
HAIR_COLOR_OPTIONS = ("BLONDE", "BRUNETTE", "BLACK", "RED", "AUBURN", "GREY", "BALD", "VARIOUS", "OTHER")
EYE_COLOR_OPTIONS = ("BROWN", "BLUE", "GREEN", "GREY", "HAZEL", "OTHER")


def _field(key: str, field: str, kind: FieldKind, label: str, **kwargs: object) -> FieldDescriptor:
    return FieldDescriptor(key=key, field=field, kind=kind, label=label, **kwargs)


def _common(name_field: str) -> list[FieldDescriptor]:
    return [
        _field("id", "id", FieldKind.NUMERIC_RANGE, "ID"),
        _field("title", name_field, FieldKind.TEXT, "Title", sortable=True),
    ]


def _timestamps() -> list[FieldDescriptor]:
    return [
        _field("createdAt", "created_at", FieldKind.DATE_RANGE, "Created At", sortable=True, timestamp=True),
        _field("updatedAt", "updated_at", FieldKind.DATE_RANGE, "Updated At", sortable=True, timestamp=True),
    ]


def _rating() -> FieldDescriptor:
    # UI rates 1-5 stars; Stash stores rating100.
    return _field("rating", "rating100", FieldKind.NUMERIC_RANGE, "Rating", sortable=True, sort_field="rating", scale=20)


def _scene_count() -> FieldDescriptor:
    return _field("sceneCount", "scene_count", FieldKind.NUMERIC_RANGE, "Scene Count", sortable=True)


def _favorite(field: str = "favorite") -> FieldDescriptor:
    return _field("favorite", field, FieldKind.BOOLEAN, "Favorite")


def _ids(key: str, label: str) -> FieldDescriptor:
    return _field(key, key, FieldKind.IDS, label)


def scene_descriptors() -> list[FieldDescriptor]:
    return [
        *_common("title"),
        _field("details", "details", FieldKind.TEXT, "Details"),
        _field("date", "date", FieldKind.DATE_RANGE, "Date", sortable=True),
        _rating(),
        _field("duration", "duration", FieldKind.NUMERIC_RANGE, "Duration (min)", sortable=True, scale=60),
        _field("oCount", "o_counter", FieldKind.NUMERIC_RANGE, "O Count", sortable=True),
        _field("playCount", "play_count", FieldKind.NUMERIC_RANGE, "Play Count", sortable=True),
        _field("performerCount", "performer_count", FieldKind.NUMERIC_RANGE, "Performer Count", sortable=True),
        _field("tagCount", "tag_count", FieldKind.NUMERIC_RANGE, "Tag Count", sortable=True),
        _field("resolution", "resolution", FieldKind.SELECT, "Resolution", enum_values=RESOLUTION_OPTIONS),
        _field("organized", "organized", FieldKind.BOOLEAN, "Organized"),
        _ids("performers", "Performers"),
        _ids("studios", "Studios"),
        _ids("tags", "Tags"),
        *_timestamps(),
    ]


def performer_descriptors() -> list[FieldDescriptor]:
    return [
        *_common("name"),
        _field("gender", "gender", FieldKind.SELECT, "Gender", enum_values=GENDER_OPTIONS),
        _field("ethnicity", "ethnicity", FieldKind.SELECT, "Ethnicity", enum_values=ETHNICITY_OPTIONS),
        _field("hairColor", "hair_color", FieldKind.SELECT, "Hair Color", enum_values=HAIR_COLOR_OPTIONS),
        _field("eyeColor", "eye_color", FieldKind.SELECT, "Eye Color", enum_values=EYE_COLOR_OPTIONS),
        _field("birthdate", "birthdate", FieldKind.DATE_RANGE, "Birthdate", sortable=True),
        _field("age", "age", FieldKind.NUMERIC_RANGE, "Age"),
        _field("height", "height_cm", FieldKind.NUMERIC_RANGE, "Height (cm)", sortable=True, sort_field="height"),
        _rating(),
        _field("oCount", "o_counter", FieldKind.NUMERIC_RANGE, "O Count", sortable=True),
        _scene_count(),
        _favorite("filter_favorites"),
        _ids("studios", "Studios"),
        _ids("tags", "Tags"),
        *_timestamps(),
    ]


def studio_descriptors() -> list[FieldDescriptor]:
    return [*_common("name"), _rating(), _scene_count(), _favorite(), _ids("tags", "Tags"), *_timestamps()]


def tag_descriptors() -> list[FieldDescriptor]:
    return [*_common("name"), _scene_count(), _favorite(), *_timestamps()]


def default_registry() -> DescriptorRegistry:
    """Build the standard registry for the four Stash entity types."""
    return DescriptorRegistry(
        {
            EntityType.SCENE: scene_descriptors(),
            EntityType.PERFORMER: performer_descriptors(),
            EntityType.STUDIO: studio_descriptors(),
            EntityType.TAG: tag_descriptors(),
        }
    )
