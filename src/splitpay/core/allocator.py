"""Whole-unit split allocation with distinct values and shuffled presentation."""

from __future__ import annotations

import random

from splitpay.errors import AllocationUnresolvableError, InvalidInputError

DEFAULT_MAX_PASSES = 1000


def count_parts(total: int, max_per_part: int) -> int:
    """Return how many split items ``allocate`` produces for these inputs.

    Returns 0 when either input is not positive, so callers can preview
    the item count while the user is still typing.
    """
    if total <= 0 or max_per_part <= 0:
        return 0
    return -(-total // max_per_part)


def allocate(
    total: int,
    max_per_part: int,
    *,
    rng: random.Random | None = None,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> list[int]:
    """Split ``total`` into ``ceil(total / max_per_part)`` distinct positive parts.

    The parts start as an even split (values differ by at most one), are
    made pairwise distinct by spreading them outward from the median, and
    the resulting sum drift is settled in correction rounds that each shift
    a contiguous block of values by one unit. The result is shuffled so
    values are not presented in sorted order.

    Args:
        total: Whole-unit amount to split
        max_per_part: Nominal maximum per split item
        rng: Random source for the shuffle (inject a seeded one in tests)
        max_passes: Upper bound on drift correction rounds

    Returns:
        Distinct positive integers summing exactly to ``total``

    Raises:
        InvalidInputError: If ``total`` or ``max_per_part`` is not a positive integer
        AllocationUnresolvableError: If ``total`` is below ``1 + 2 + ... + n``,
            or the drift is not settled within ``max_passes`` rounds
    """
    _validate_positive_int("total", total)
    _validate_positive_int("max_per_part", max_per_part)

    n = count_parts(total, max_per_part)
    if n == 1:
        return [total]
    if total < n * (n + 1) // 2:
        raise AllocationUnresolvableError(
            f"Cannot split {total} into {n} distinct positive values"
        )

    values = _spread_from_median(_even_split(total, n))
    _settle_drift(values, sum(values) - total, max_passes)

    (rng or random.Random()).shuffle(values)
    return values


def _validate_positive_int(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidInputError(f"{name} must be positive, got {value}")


def _even_split(total: int, n: int) -> list[int]:
    """Sorted even split: ``total % n`` values of ``base + 1``, the rest ``base``."""
    base, remainder = divmod(total, n)
    return [base] * (n - remainder) + [base + 1] * remainder


def _spread_from_median(values: list[int]) -> list[int]:
    """Push sorted values apart so neighbours differ by at least one."""
    mid = len(values) // 2
    for i in range(mid + 1, len(values)):
        values[i] = max(values[i], values[i - 1] + 1)
    for i in range(mid - 1, -1, -1):
        values[i] = min(values[i], values[i + 1] - 1)
    return values


def _settle_drift(values: list[int], drift: int, max_passes: int) -> None:
    """Move the sum of strictly increasing ``values`` back by ``drift`` units.

    A round raises the top block of values by one, or lowers the block
    starting at the lowest free slot by one; either keeps the values
    strictly increasing and positive.
    """
    rounds = 0
    while drift != 0:
        if rounds >= max_passes:
            raise AllocationUnresolvableError(
                f"Split values still off by {drift} after {max_passes} rounds"
            )
        rounds += 1

        if drift < 0:
            count = min(-drift, len(values))
            for i in range(len(values) - count, len(values)):
                values[i] += 1
            drift += count
        else:
            start = _lowerable_start(values)
            if start is None:
                raise AllocationUnresolvableError(
                    "No split value can be lowered without a duplicate"
                )
            count = min(drift, len(values) - start)
            for i in range(start, start + count):
                values[i] -= 1
            drift -= count


def _lowerable_start(values: list[int]) -> int | None:
    """Smallest index whose value can drop by one, staying >= 1 and unique."""
    if values[0] > 1:
        return 0
    for i in range(1, len(values)):
        if values[i - 1] < values[i] - 1:
            return i
    return None
