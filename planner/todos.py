"""To-do list summaries."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from planner.models import Todo, TodoPriority

_PRIORITY_RANK = {TodoPriority.HIGH: 0, TodoPriority.MEDIUM: 1, TodoPriority.LOW: 2}


@dataclass
class TodoStats:
    active: int
    high_priority: int
    overdue: int

    def to_dict(self) -> dict[str, int]:
        return {"active": self.active, "high_priority": self.high_priority, "overdue": self.overdue}


def todo_stats(todos: Iterable[Todo], today: date) -> TodoStats:
    active = [todo for todo in todos if not todo.completed]
    return TodoStats(
        active=len(active),
        high_priority=sum(1 for todo in active if todo.priority is TodoPriority.HIGH),
        overdue=sum(1 for todo in active if todo.due_date is not None and todo.due_date < today),
    )


def sort_for_widget(todos: Iterable[Todo]) -> list[Todo]:
    """Highest priority first, then earliest due date; undated last."""
    return sorted(
        todos,
        key=lambda todo: (_PRIORITY_RANK[todo.priority], todo.due_date is None, todo.due_date or date.max),
    )
