from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple, Union

INTEGER = "integer"
FLOAT = "float"
STRING = "string"
CATEGORICAL = "categorical"

FIELD_TYPES = (INTEGER, FLOAT, STRING, CATEGORICAL)

Transform = Callable[[Any], Any]


class ViewSpecError(ValueError):
    """A view or endpoint definition is structurally invalid."""


@dataclass(frozen=True)
class FieldSpec:
    key: str
    sources: Tuple[str, ...] = ()
    type: str = STRING
    default: Any = None
    transform: Optional[Transform] = None
    choices: Tuple[str, ...] = ()
    required: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.sources, str):
            object.__setattr__(self, "sources", (self.sources,))
        else:
            object.__setattr__(self, "sources", tuple(self.sources))
        object.__setattr__(self, "choices", tuple(self.choices))
        if not self.key:
            raise ViewSpecError("Field output key must be a non-empty string.")
        if self.type not in FIELD_TYPES:
            raise ViewSpecError(f"Field '{self.key}' has unknown type '{self.type}'.")
        if self.required and self.default is not None:
            raise ViewSpecError(f"Required field '{self.key}' cannot carry a default.")
        if self.required and not self.sources:
            raise ViewSpecError(f"Required field '{self.key}' needs at least one source key.")
        if self.choices and self.type != CATEGORICAL:
            raise ViewSpecError(f"Field '{self.key}' declares choices but is not categorical.")

    @property
    def is_constant(self) -> bool:
        return not self.sources

    @property
    def candidates(self) -> Tuple[str, ...]:
        """Source aliases followed by the output key itself.

        Falling back to the output key lets an already-normalized record be
        fed through the same view again.
        """
        if any(s.lower() == self.key.lower() for s in self.sources):
            return self.sources
        return self.sources + (self.key,)


@dataclass(frozen=True)
class ViewSpec:
    name: str
    fields: Tuple[FieldSpec, ...]
    drop_incomplete: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.fields:
            raise ViewSpecError(f"View '{self.name}' declares no fields.")
        seen = set()
        for spec in self.fields:
            if spec.key in seen:
                raise ViewSpecError(f"View '{self.name}' has duplicate output key '{spec.key}'.")
            seen.add(spec.key)
        if self.drop_incomplete and not self.required_keys:
            raise ViewSpecError(f"Map view '{self.name}' has no required fields to filter on.")

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(spec.key for spec in self.fields)

    @property
    def required_keys(self) -> Tuple[str, ...]:
        return tuple(spec.key for spec in self.fields if spec.required)


# ---------------- Field constructors ----------------
Sources = Union[str, Sequence[str]]


def lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


def integer(key: str, sources: Sources, default: Any = 0) -> FieldSpec:
    return FieldSpec(key=key, sources=sources, type=INTEGER, default=default)


def number(key: str, sources: Sources, default: Any = None) -> FieldSpec:
    return FieldSpec(key=key, sources=sources, type=FLOAT, default=default)


def text(key: str, sources: Sources, default: Any = "", transform: Optional[Transform] = None) -> FieldSpec:
    return FieldSpec(key=key, sources=sources, type=STRING, default=default, transform=transform)


def category(
    key: str,
    sources: Sources,
    default: Any = "",
    transform: Optional[Transform] = None,
    choices: Sequence[str] = (),
) -> FieldSpec:
    return FieldSpec(key=key, sources=sources, type=CATEGORICAL, default=default, transform=transform, choices=choices)


def constant(key: str, value: Any) -> FieldSpec:
    return FieldSpec(key=key, sources=(), type=STRING, default=value)


def year(key: str = "year", sources: Sources = "year") -> FieldSpec:
    return integer(key, sources, default=0)


def money(key: str, sources: Sources) -> FieldSpec:
    """Price / mileage style field: float, ``None`` when there is no data."""
    return number(key, sources, default=None)


def coordinate(key: str, sources: Sources) -> FieldSpec:
    return FieldSpec(key=key, sources=sources, type=FLOAT, default=None, required=True)


def state(key: str = "state", sources: Sources = "state") -> FieldSpec:
    return category(key, sources, default="")


def fuel_type_code(key: str = "fuelType", sources: Sources = ("fuel_type_code", "fuel_type"), default: str = "") -> FieldSpec:
    return category(key, sources, default=default, transform=lower)
