"""Engine input records."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, ConfigDict, Field, field_validator

from .base import CamelModel
from .enums import IssueState


class RepositoryContext(CamelModel):
    """Repository an issue belongs to."""
    model_config = ConfigDict(frozen=True)

    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    branch: Optional[str] = None

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


class IssueInput(CamelModel):
    """
    An issue as handed to the engine.

    Accepts raw GitHub API payloads: labels may be strings or objects with a
    `name` key and `html_url` is read as `url`. Unknown keys are ignored.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    number: Optional[int] = None
    title: str
    body: Optional[str] = None
    labels: List[str] = Field(default_factory=list)
    state: IssueState = IssueState.OPEN
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("url", "html_url", "htmlUrl")
    )
    custom_factors: Dict[str, float] = Field(default_factory=dict)

    @field_validator("labels", mode="before")
    @classmethod
    def normalize_labels(cls, v: Any) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        names = []
        for label in v:
            if isinstance(label, dict):
                names.append(label.get("name"))
            else:
                names.append(label)
        return names

    @field_validator("custom_factors")
    @classmethod
    def validate_custom_factors(cls, v: Dict[str, float]) -> Dict[str, float]:
        for factor_id, value in v.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Custom factor '{factor_id}' must be within [0, 1] (got {value})")
        return v

    @property
    def text_body(self) -> str:
        return self.body or ""
