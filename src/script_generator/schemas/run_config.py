"""Run configuration models.

A run is described by up to three sections. Only `generation` is required;
leaving out both evidence sections produces a prompt-only generation.
"""

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from typing import FrozenSet, Optional, Tuple

class GenerationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    prompt: str = ""
    api_key: str = ""
    model: Optional[str] = None

class EvidenceSearchSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_query: str
    search_tags: FrozenSet[str] = frozenset()
    number_of_questions: PositiveInt = 10
    only_search_questions: bool = False
    export_pdf: bool = False
    access_token: str = ""
    key: str = ""

class OtherSourcesSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    urls: Tuple[str, ...] = ()

    @field_validator("urls", mode="before")
    @classmethod
    def _drop_empty(cls, v):
        if v is None:
            return ()
        return tuple(u.strip() for u in v if u and u.strip())

class RunConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    evidence_search: Optional[EvidenceSearchSettings] = None
    other_sources: Optional[OtherSourcesSettings] = None
