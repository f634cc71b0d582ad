"""Ordering-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field, computed_field, model_validator

CollectionName = Literal["projects", "categories", "links"]


class Placement(BaseModel):
    """Where to put an item relative to one of its siblings.

    At most one anchor may be given; with none, the item goes to the end.
    """

    before_id: int | None = Field(None, description="Place the item directly before this sibling")
    after_id: int | None = Field(None, description="Place the item directly after this sibling")

    @model_validator(mode="after")
    def _single_anchor(self) -> "Placement":
        if self.before_id is not None and self.after_id is not None:
            raise ValueError("Specify either before_id or after_id, not both")
        return self


class RebalanceResult(BaseModel):
    """Outcome of compacting one collection's order keys."""

    collection: CollectionName
    scope_id: int
    mapping: dict[str, str] = Field(default_factory=dict, description="Old key to new key")
    dry_run: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def changed(self) -> int:
        """Return how many keys actually differ from their replacement."""
        return sum(1 for old, new in self.mapping.items() if old != new)
