# patching.py — Typed partial updates
# A Patch holds only the fields the client actually sent. Absent fields are
# UNSET (distinct from an explicit None, which clears a nullable column).

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from pydantic import BaseModel

from errors import ValidationError


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


@dataclass(frozen=True)
class Patch:
    values: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: BaseModel) -> "Patch":
        return cls({name: getattr(model, name) for name in model.model_fields_set})

    def get(self, name: str) -> Any:
        return self.values.get(name, UNSET)

    def provided(self, name: str) -> bool:
        return name in self.values

    def __bool__(self) -> bool:
        return bool(self.values)


def apply_patch(
    target: Any,
    patch: Patch,
    allowed: Iterable[str],
    non_nullable: Iterable[str] = (),
) -> List[str]:
    """Apply provided fields to an ORM object. Returns the names that changed."""
    allowed = set(allowed)
    non_nullable = set(non_nullable)

    if not patch:
        raise ValidationError("No fields to update")

    unknown = sorted(set(patch.values) - allowed)
    if unknown:
        raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

    changed = []
    for name, value in patch.values.items():
        if value is None and name in non_nullable:
            raise ValidationError(f"{name} cannot be empty")
        if getattr(target, name) != value:
            setattr(target, name, value)
            changed.append(name)
    return changed
