# /ingestion/sources.py

from abc import ABC, abstractmethod
from typing import Any, List
import json
import os

from pydantic import ValidationError

from lineage.logger import get_logger
from lineage.models import EntityRecord

logger = get_logger(__name__)

class DataSource(ABC):
    """Abstract base class for a source of family member records."""
    @abstractmethod
    def load_records(self) -> List[EntityRecord]:
        """Loads the records from the source and returns them as a list."""
        pass

class JsonCorpusSource(DataSource):
    """
    Loads family members from a JSON file. The file holds either a list of
    records or an object with a "family_members" list.
    """
    def __init__(self, path: str):
        self.path = path

    def load_records(self) -> List[EntityRecord]:
        logger.info(f"Loading family records from {self.path}")
        if not os.path.isfile(self.path):
            raise ValueError(f"The corpus file {self.path} does not exist.")

        try:
            with open(self.path, encoding="utf-8") as f:
                content = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to read corpus file {self.path}: {e}") from e

        raw_records = content.get("family_members") if isinstance(content, dict) else content
        if not isinstance(raw_records, list):
            raise ValueError("Invalid corpus structure - expected a list or a 'family_members' array.")

        records = []
        for position, raw in enumerate(raw_records):
            try:
                records.append(EntityRecord.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping record {position}: {e.errors()[0]['msg']}")
        logger.info(f"Loaded {len(records)} of {len(raw_records)} family records.")
        return records


def flatten_record(record: EntityRecord) -> str:
    """Flattens one person into the text blob that gets embedded."""
    lines = [f"Name: {record.name}"]
    if record.birth_date:
        lines.append(f"Birth Date: {record.birth_date}")
    lines.append(f"Death Date: {record.death_date or 'Still alive'}")
    if record.bio:
        lines.append(f"Bio: {record.bio}")
    lines.append(f"Relationships: {_format_mapping(record.relationships) or 'No relationships recorded'}")
    extras = {**record.metadata, **(record.model_extra or {})}
    if extras:
        lines.append(f"Additional Information: {_format_mapping(extras)}")
    return "\n".join(lines)


def _format_mapping(mapping: dict) -> str:
    parts = []
    for key, value in mapping.items():
        if value in (None, "", [], {}):
            continue
        parts.append(f"{key}: {_format_value(value)}")
    return ", ".join(parts)


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(_format_value(v) for v in value)
    if isinstance(value, dict):
        return str(value.get("name")) if "name" in value else json.dumps(value, sort_keys=True)
    return str(value)
