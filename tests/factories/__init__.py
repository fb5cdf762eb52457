"""Factories for domain models used in tests."""

from .domain import (
    PROGRAM_START,
    TESTING_VALUES,
    TRAINING_VALUES,
    AthleteFactory,
    BlockFactory,
    ResultRecordFactory,
    at_noon,
    logical_values,
)

__all__ = [
    "AthleteFactory",
    "BlockFactory",
    "PROGRAM_START",
    "ResultRecordFactory",
    "TESTING_VALUES",
    "TRAINING_VALUES",
    "at_noon",
    "logical_values",
]
