"""
Tagged state transitions persisted through conditional updates.

Every guarded transition in the system follows the same two steps:

1. Run the django-fsm transition on the loaded instance. This checks that
   the state machine has an edge from the loaded state and computes the new
   field values (status plus the status-specific timestamp) in memory.
2. Persist with a single ``UPDATE ... WHERE pk = ? AND <state> = <expected>``
   optionally extended with extra predicates (ownership, payment state).
   Zero affected rows means another session changed the row first, reported
   as StaleStateError. Nothing is retried.

No row lock is taken between the read and the write; the predicate in the
WHERE clause is the only guard.

Usage:
    from core.transitions import persist_transition

    order = Order.objects.get(pk=order_id, provider_id=provider_id)
    persist_transition(
        order,
        "accept",
        fields=["accepted_at"],
        predicate={"provider_id": provider_id},
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.utils import timezone

from django_fsm import TransitionNotAllowed

from core.exceptions import InvalidStateTransitionError, NotFoundError, StaleStateError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Any

    from django.db import models

logger = logging.getLogger(__name__)


def conditional_update(
    model: type[models.Model],
    pk: Any,
    predicate: dict[str, Any],
    values: dict[str, Any],
) -> int:
    """
    Apply ``values`` to the row ``pk`` only if it matches ``predicate``.

    ``updated_at`` is stamped alongside the assignment when the model has it.

    Returns:
        Number of affected rows (0 or 1)
    """
    values = dict(values)
    if any(f.name == "updated_at" for f in model._meta.concrete_fields):
        values.setdefault("updated_at", timezone.now())
    return model.objects.filter(pk=pk, **predicate).update(**values)


def stale_or_missing(
    model: type[models.Model],
    pk: Any,
    state_field: str,
    expected: str,
) -> NotFoundError | StaleStateError:
    """
    Classify a zero-row conditional update.

    Returns the exception for the caller to raise: NotFoundError when the row
    is gone, StaleStateError carrying the expected and current state otherwise.
    """
    current = model.objects.filter(pk=pk).values_list(state_field, flat=True).first()
    name = model._meta.verbose_name.capitalize()
    if current is None:
        return NotFoundError(
            f"{name} {pk} not found",
            details={"id": str(pk)},
        )
    return StaleStateError(
        f"{name} {pk} changed concurrently",
        details={"id": str(pk), "expected": expected, "current": current},
    )


def persist_transition(
    instance: models.Model,
    transition_name: str,
    *,
    fields: Iterable[str] = (),
    state_field: str = "status",
    predicate: dict[str, Any] | None = None,
    **kwargs: Any,
) -> models.Model:
    """
    Run a django-fsm transition and persist it with one conditional UPDATE.

    Args:
        instance: Loaded model instance in its expected source state
        transition_name: Name of the @transition method to run
        fields: Non-state fields the transition sets (timestamps, audit fields)
        state_field: Name of the FSMField
        predicate: Extra WHERE conditions repeated in the UPDATE
        **kwargs: Passed through to the transition method

    Returns:
        The instance, now reflecting the persisted state

    Raises:
        InvalidStateTransitionError: The loaded state has no such edge
        StaleStateError: The row left the expected state before the write
        NotFoundError: The row no longer exists
    """
    model = type(instance)
    expected = getattr(instance, state_field)
    fields = list(fields)
    previous = {name: getattr(instance, name) for name in fields}
    method = getattr(instance, transition_name)

    try:
        method(**kwargs)
    except TransitionNotAllowed as exc:
        raise InvalidStateTransitionError(
            f"Cannot {transition_name} {model._meta.verbose_name} in {expected} state",
            details={"id": str(instance.pk), "current": expected, "action": transition_name},
        ) from exc

    values = {state_field: getattr(instance, state_field)}
    for name in fields:
        values[name] = getattr(instance, name)
    values["updated_at"] = timezone.now()

    filters = {state_field: expected, **(predicate or {})}
    rows = conditional_update(model, instance.pk, filters, values)
    if rows == 0:
        # Roll the in-memory instance back so callers don't see a phantom state
        setattr(instance, state_field, expected)
        for name, value in previous.items():
            setattr(instance, name, value)
        error = stale_or_missing(model, instance.pk, state_field, expected)
        logger.info(
            "Conditional transition matched no rows",
            extra={
                "model": model.__name__,
                "object_id": str(instance.pk),
                "transition": transition_name,
                "expected": expected,
                "error_code": error.error_code,
            },
        )
        raise error

    instance.updated_at = values["updated_at"]
    return instance
