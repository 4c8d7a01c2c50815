"""Habit domain entity - schedule rules and audit event payloads"""
from datetime import date, datetime, timezone
from typing import Dict, Any, Iterable

from dailyhabits.domain.calendar import DEFAULT_SCHEDULED_DAYS

HABIT_TYPES = ("boolean", "count", "time")


class ScheduleValidationError(ValueError):
    pass


def validate_scheduled_days(value: Any) -> list[int] | None:
    """Validate a custom weekly schedule and return it de-duplicated and sorted.

    None means "every weekday" and is returned unchanged.
    """
    if value is None:
        return None
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ScheduleValidationError("scheduled_days must be an array")
    if len(value) == 0:
        raise ScheduleValidationError("At least one day must be selected")
    for d in value:
        # bool is an int subclass; True must not pass as Monday
        if isinstance(d, bool) or not isinstance(d, int) or d < 1 or d > 5:
            raise ScheduleValidationError("scheduled_days must contain only weekdays (1-5)")
    return sorted(set(value))


def parse_scheduled_days(raw: str | None) -> list[int] | None:
    """DB column "1,3,5" -> [1, 3, 5]; NULL/empty -> None"""
    if not raw:
        return None
    return sorted({int(part) for part in raw.split(",") if part.strip()})


def format_scheduled_days(days: Iterable[int] | None) -> str | None:
    if days is None:
        return None
    return ",".join(str(d) for d in sorted(set(days)))


def effective_schedule(days: Iterable[int] | None) -> frozenset[int]:
    """NULL is the implicit Monday-Friday set."""
    if days is None:
        return DEFAULT_SCHEDULED_DAYS
    return frozenset(days)


def schedule_changed(old: Iterable[int] | None, new: Iterable[int] | None) -> bool:
    """True only for an effective change: order, duplicates and NULL vs. the
    default set do not count."""
    return effective_schedule(old) != effective_schedule(new)


def completion_target(target_value: int | None) -> int:
    """Count habits without a target are complete at 1."""
    return target_value or 1


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Habit:
    @staticmethod
    def create(
        account_id: int,
        habit_id: int,
        name: str,
        type: str,
        target_value: int | None,
        sort_order: int,
        scheduled_days: list[int] | None,
        created_at: date,
    ) -> Dict[str, Any]:
        return {
            "habit_id": habit_id,
            "account_id": account_id,
            "name": name,
            "type": type,
            "target_value": target_value,
            "sort_order": sort_order,
            "scheduled_days": scheduled_days,
            "created_at": created_at.isoformat(),
        }

    @staticmethod
    def update(habit_id: int, **changes) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"habit_id": habit_id, "updated_at": _now_iso()}
        for key in ("name", "type", "target_value", "sort_order", "scheduled_days"):
            if key in changes:
                payload[key] = changes[key]
        return payload

    @staticmethod
    def streak_frozen(
        habit_id: int,
        old_scheduled_days: list[int] | None,
        new_scheduled_days: list[int] | None,
        streak_so_far: int,
        frozen_streak: int,
        streak_frozen_at: date,
    ) -> Dict[str, Any]:
        return {
            "habit_id": habit_id,
            "old_scheduled_days": old_scheduled_days,
            "new_scheduled_days": new_scheduled_days,
            "streak_so_far": streak_so_far,
            "frozen_streak": frozen_streak,
            "streak_frozen_at": streak_frozen_at.isoformat(),
        }

    @staticmethod
    def retargeted(habit_id: int, old_target: int | None, new_target: int, rows_recomputed: int) -> Dict[str, Any]:
        return {
            "habit_id": habit_id,
            "old_target": old_target,
            "new_target": new_target,
            "rows_recomputed": rows_recomputed,
        }

    @staticmethod
    def pause(habit_id: int) -> Dict[str, Any]:
        return {"habit_id": habit_id, "paused_at": _now_iso()}

    @staticmethod
    def unpause(habit_id: int) -> Dict[str, Any]:
        return {"habit_id": habit_id, "unpaused_at": _now_iso()}

    @staticmethod
    def archive(habit_id: int) -> Dict[str, Any]:
        return {"habit_id": habit_id, "archived_at": _now_iso()}

    @staticmethod
    def unarchive(habit_id: int) -> Dict[str, Any]:
        return {"habit_id": habit_id, "unarchived_at": _now_iso()}

    @staticmethod
    def delete(habit_id: int, completions_removed: int) -> Dict[str, Any]:
        return {"habit_id": habit_id, "completions_removed": completions_removed, "deleted_at": _now_iso()}
