# backend/shopdb/apps/work/errors.py

"""
Work-order domain errors.

Services raise these; routers turn them into HTTP responses using
`status_code` and `message`. Nothing here imports FastAPI.
"""

from __future__ import annotations

from enum import Enum
from typing import Union


def _status_value(value: Union[Enum, str]) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class WorkOrderError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WorkOrderNotFound(WorkOrderError):
    """Unknown id, or an id that belongs to another shop."""

    status_code = 404

    def __init__(self, message: str = "Work order not found"):
        super().__init__(message)


class RelatedRecordNotFound(WorkOrderError):
    """An aircraft or customer referenced by a work order is not in the shop."""

    status_code = 404


class WorkOrderValidationError(WorkOrderError):
    status_code = 400


class StatusValidationError(WorkOrderValidationError):
    """Missing or unknown target status."""


class InvalidTransition(WorkOrderError):
    status_code = 400

    def __init__(self, current: Union[Enum, str], target: Union[Enum, str]):
        self.current = _status_value(current)
        self.target = _status_value(target)
        super().__init__(
            f"Cannot change status from '{self.current}' to '{self.target}'"
        )


class TransitionConflict(WorkOrderError):
    """Every compare-and-set attempt lost to a concurrent status change."""

    status_code = 409

    def __init__(
        self,
        current: Union[Enum, str],
        target: Union[Enum, str],
        message: str = "Work order status changed concurrently; try again",
    ):
        self.current = _status_value(current)
        self.target = _status_value(target)
        super().__init__(message)
