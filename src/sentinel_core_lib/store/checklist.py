"""Checklist Engine - pure investigation checklist operations"""

from typing import Iterable

from sentinel_core_lib.models import Case, ChecklistItem, ChecklistStep


def toggle_checklist_item(case: Case, step: int) -> Case:
    """Flip ``completed`` on the item(s) with the given step number"""
    checklist = [
        item.model_copy(update={"completed": not item.completed}) if item.step == step else item
        for item in case.checklist
    ]
    return case.model_copy(update={"checklist": checklist})


def replace_checklist(case: Case, steps: Iterable[ChecklistStep]) -> Case:
    """Replace the whole checklist.

    Every new item starts uncompleted, even when a step number and its text
    match an item that was completed before.
    """
    checklist = [
        ChecklistItem(step=s.step, action=s.action, details=s.details, completed=False)
        for s in steps
    ]
    return case.model_copy(update={"checklist": checklist})
