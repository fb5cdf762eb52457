"""Completeness predicate for submitted session results.

Result values are persisted under storage column names that have changed over
the life of the program. The predicate never looks at column names directly:
it asks the versioned :class:`ResultSchema` the record was written with for the
column behind every logical field. Adding a schema version is the only place a
storage rename needs to be reflected.

>>> record = ResultRecord(
...     athlete_id="a-1",
...     session_id="a-1:b1:w5:s1",
...     session_type=SessionType.TESTING,
...     values={
...         "standing_long_jump": 180.0,
...         "single_leg_jump_left": 120.0,
...         "single_leg_jump_right": 118.5,
...         "wall_sit_assessment": 45.0,
...         "high_plank_assessment": 60.0,
...     },
...     schema_version=CURRENT_SCHEMA_VERSION,
... )
>>> is_complete(record)
True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .models import ResultRecord, SessionType

__all__ = [
    "CURRENT_SCHEMA_VERSION",
    "OPTIONAL_TESTING_FIELDS",
    "ResultSchema",
    "SCHEMAS",
    "TESTING_FIELDS",
    "TRAINING_FIELDS",
    "get_schema",
    "is_complete",
    "missing_fields",
    "required_fields",
]

TRAINING_FIELDS: tuple[str, ...] = (
    "warmup_completed",
    "plyometrics",
    "power",
    "lower_body_strength",
    "upper_body_core_strength",
)

TESTING_FIELDS: tuple[str, ...] = (
    "standing_long_jump",
    "single_leg_jump_left",
    "single_leg_jump_right",
    "wall_sit",
    "high_plank",
    "bent_arm_hang",
)

# Bonus assessment: recorded for progress charts, never gates completion.
OPTIONAL_TESTING_FIELDS: frozenset[str] = frozenset({"bent_arm_hang"})


@dataclass(slots=True, frozen=True)
class ResultSchema:
    """Mapping from logical result fields to storage columns for one version."""

    version: str
    training_columns: Mapping[str, str]
    testing_columns: Mapping[str, str]

    def columns_for(self, session_type: SessionType) -> Mapping[str, str]:
        if session_type is SessionType.TRAINING:
            return self.training_columns
        if session_type is SessionType.TESTING:
            return self.testing_columns
        return {}

    def column(self, session_type: SessionType, field_name: str) -> str:
        """Return storage column for ``field_name`` or raise ``KeyError``."""

        return self.columns_for(session_type)[field_name]

    def to_storage(
        self, session_type: SessionType, fields: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Translate logical field values into storage column values.

        Raises:
            ValueError: If ``fields`` contains a name unknown to the schema.
        """

        columns = self.columns_for(session_type)
        unknown = sorted(set(fields) - set(columns))
        if unknown:
            raise ValueError(
                f"unknown {session_type.value} fields: {', '.join(unknown)}"
            )
        return {columns[name]: value for name, value in fields.items()}

    def to_logical(
        self, session_type: SessionType, values: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Return logical view of stored values (missing columns map to ``None``)."""

        return {
            name: values.get(column)
            for name, column in self.columns_for(session_type).items()
        }


_TRAINING_COLUMNS: Mapping[str, str] = {
    "warmup_completed": "warmup_completed",
    "plyometrics": "plyometrics_score",
    "power": "power_score",
    "lower_body_strength": "lower_body_strength_score",
    "upper_body_core_strength": "upper_body_core_strength_score",
}

SCHEMAS: Mapping[str, ResultSchema] = {
    # Initial pre-training layout.
    "2025-03-14": ResultSchema(
        version="2025-03-14",
        training_columns=_TRAINING_COLUMNS,
        testing_columns={
            "standing_long_jump": "standing_long_jump",
            "single_leg_jump_left": "single_leg_jump_left",
            "single_leg_jump_right": "single_leg_jump_right",
            "wall_sit": "wall_sit",
            "high_plank": "core_endurance",
            "bent_arm_hang": "bent_arm_hang",
        },
    ),
    "2025-03-19": ResultSchema(
        version="2025-03-19",
        training_columns=_TRAINING_COLUMNS,
        testing_columns={
            "standing_long_jump": "standing_long_jump",
            "single_leg_jump_left": "single_leg_jump_left",
            "single_leg_jump_right": "single_leg_jump_right",
            "wall_sit": "wall_sit_assessment",
            "high_plank": "high_plank_assessment",
            "bent_arm_hang": "bent_arm_hang_assessment",
        },
    ),
}

CURRENT_SCHEMA_VERSION = "2025-03-19"


def get_schema(
    version: str, schemas: Mapping[str, ResultSchema] | None = None
) -> ResultSchema:
    """Return schema registered for ``version``.

    Raises:
        ValueError: If the version is not registered.
    """

    registry = SCHEMAS if schemas is None else schemas
    try:
        return registry[version]
    except KeyError:
        raise ValueError(f"unknown result schema version: {version!r}") from None


def required_fields(session_type: SessionType) -> tuple[str, ...]:
    """Return logical fields that gate completion for ``session_type``."""

    if session_type is SessionType.TRAINING:
        return TRAINING_FIELDS
    if session_type is SessionType.TESTING:
        return tuple(f for f in TESTING_FIELDS if f not in OPTIONAL_TESTING_FIELDS)
    return ()


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def missing_fields(
    record: ResultRecord, schemas: Mapping[str, ResultSchema] | None = None
) -> tuple[str, ...]:
    """Return required logical fields absent from ``record``."""

    schema = get_schema(record.schema_version, schemas)
    columns = schema.columns_for(record.session_type)
    missing: list[str] = []
    for name in required_fields(record.session_type):
        column = columns.get(name)
        if column is None or not _is_present(record.values.get(column)):
            missing.append(name)
    return tuple(missing)


def is_complete(
    record: ResultRecord | None, schemas: Mapping[str, ResultSchema] | None = None
) -> bool:
    """Return ``True`` when every required field of ``record`` is filled in.

    Rest sessions and missing records are never complete. The ``completed_at``
    timestamp is a separate condition checked by the state resolver.
    """

    if record is None or record.session_type is SessionType.REST:
        return False
    return not missing_fields(record, schemas)
