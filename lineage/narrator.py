# /lineage/narrator.py

from typing import Any, List

from pydantic import ValidationError

from lineage.graph_executor import IDENTIFIER_KEYS, classify_row
from lineage.models import NormalizedRow, PathResult, RowShape
from lineage.schema_catalog import PARENT_OF

NO_RESULTS = "No results found for: {question}"

# (property, label) in the order details are shown.
PERSON_DETAILS = (
    ("birth_date", "born"),
    ("death_date", "died"),
    ("bio", "bio"),
    ("biography", "biography"),
    ("hobbies", "hobbies"),
    ("occupation", "occupation"),
    ("location", "location"),
)


def narrate(rows: List[NormalizedRow], question: str = "") -> str:
    """Renders normalized rows as a numbered list, one line per row."""
    if not rows:
        return NO_RESULTS.format(question=question)
    return "\n".join(f"{index}. {narrate_row(row)}" for index, row in enumerate(rows, start=1))


def narrate_row(row: NormalizedRow) -> str:
    if not isinstance(row, dict):
        return str(row)
    shape = classify_row(row)
    if shape is RowShape.PATH:
        return narrate_path(row)
    if shape is RowShape.PERSON:
        return describe_person(row)
    if shape is RowShape.AGGREGATE:
        return describe_aggregate(row)
    if shape is RowShape.SCALAR:
        return ", ".join(f"{key}: {value}" for key, value in row.items())
    return describe_generic(row)


def narrate_path(row: NormalizedRow) -> str:
    path = row.get("path") or []
    types = [str(t) for t in row.get("relationship_types") or []]
    try:
        result = PathResult(path=path, relationship_types=types, path_length=row.get("path_length", len(types)))
        people = result.people
    except ValidationError:
        # Paths that break the hop invariants still get a best-effort reading.
        people = [str(e["name"]) for e in path if isinstance(e, dict) and e.get("name")]

    if len(people) < 2:
        return describe_generic(row)

    # relationship_starts holds the start node of each hop.
    starts = [str(s) for s in row.get("relationship_starts") or []]
    forward = True
    if len(starts) == len(types) == len(people) - 1:
        if starts == people[1:] and starts != people[:-1]:
            people, types = people[::-1], types[::-1]
        else:
            forward = starts == people[:-1]

    if forward and types == [PARENT_OF] and len(people) == 2:
        return f"{people[0]} is the parent of {people[1]}"
    if forward and types == [PARENT_OF, PARENT_OF] and len(people) == 3:
        return f"{people[0]} is the grandparent of {people[2]} (through {people[1]})"

    steps = len(types)
    unit = "step" if steps == 1 else "steps"
    return f"{people[0]} is connected to {people[-1]} through: {' -> '.join(types)} ({steps} {unit})"


def describe_person(person: NormalizedRow) -> str:
    details = [
        f"{label}: {person[key]}"
        for key, label in PERSON_DETAILS
        if person.get(key) not in (None, "")
    ]
    name = str(person.get("name"))
    if not details:
        return name
    return f"{name} ({', '.join(details)})"


def describe_aggregate(row: NormalizedRow) -> str:
    parts = []
    for key, value in row.items():
        if isinstance(value, list):
            parts.append(f"{key}: {_join_items(value)}")
        else:
            parts.append(f"{key}: {_short(value)}")
    return "; ".join(parts)


def describe_generic(row: NormalizedRow) -> str:
    id_key = next((key for key in IDENTIFIER_KEYS if row.get(key) not in (None, "")), None)
    if id_key is None:
        return ", ".join(f"{key}: {value}" for key, value in list(row.items())[:3])

    others = [f"{key}: {_short(value)}" for key, value in row.items() if key != id_key][:3]
    if not others:
        return str(row[id_key])
    return f"{row[id_key]} ({', '.join(others)})"


def _short(value: Any) -> str:
    if isinstance(value, dict) and value.get("name"):
        return str(value["name"])
    return str(value)


def _join_items(values: List[Any]) -> str:
    named = [item for item in values if isinstance(item, dict) and item.get("name")]
    # A bare path alternates people with relationship maps; only the people are read out.
    items = named if named else values
    return ", ".join(_short(item) for item in items)
