# /lineage/models.py

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Shared Pydantic data structures for the retrieval pipeline.

NormalizedRow = Dict[str, Any]

class Document(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The flattened entity record.")
    embedding: List[float] = Field(description="The vector embedding of the text.")

class EntityRecord(BaseModel):
    """One person from the corpus file. Unknown keys are kept."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    bio: Optional[str] = None
    relationships: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)

class GeneratedQuery(BaseModel):
    raw_text: str = Field(description="Sanitized Cypher produced for a question.")
    parameters: Dict[str, Any] = Field(default_factory=dict)

class RowShape(str, Enum):
    PERSON = "person"
    AGGREGATE = "aggregate"
    PATH = "path"
    SCALAR = "scalar"
    GENERIC = "generic"

class PathResult(BaseModel):
    path: List[Any]
    relationship_types: List[str]
    path_length: int

    @property
    def people(self) -> List[str]:
        # Relationship entries carry no name and are skipped.
        return [
            str(entry["name"]) for entry in self.path
            if isinstance(entry, dict) and entry.get("name")
        ]

    @model_validator(mode="after")
    def check_hops(self):
        if len(self.relationship_types) != self.path_length:
            raise ValueError(
                f"path has {len(self.relationship_types)} relationship types but length {self.path_length}"
            )
        if len(self.people) != self.path_length + 1:
            raise ValueError(
                f"path of length {self.path_length} must name {self.path_length + 1} people, found {len(self.people)}"
            )
        return self

class PipelineStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DEGRADED = "degraded"

class PipelineState(BaseModel):
    status: PipelineStatus = PipelineStatus.UNINITIALIZED
    failure_reason: Optional[str] = None

class HealthStatus(BaseModel):
    status: PipelineStatus
    detail: str
