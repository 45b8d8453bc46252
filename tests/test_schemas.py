import pytest

from flashboard.errors import ValidationError
from flashboard.schemas import TaskPatch, TaskUpdate


def test_patch_tracks_provided_fields():
    patch = TaskPatch.from_update(TaskUpdate(title="  New  "))
    assert patch.provided == {"title"}
    assert patch.title == "New"
    assert patch.changes() == {"title": "New"}
    assert not patch.moves_task


def test_explicit_null_description_clears_it():
    patch = TaskPatch.from_update(TaskUpdate.model_validate({"description": None}))
    assert patch.changes() == {"description": None}


def test_column_change_is_not_a_plain_field():
    patch = TaskPatch.from_update(TaskUpdate(columnId="col-2", title="x"))
    assert patch.moves_task
    assert patch.column_id == "col-2"
    assert patch.changes() == {"title": "x"}


def test_empty_patch_is_rejected():
    with pytest.raises(ValidationError) as exc:
        TaskPatch.from_update(TaskUpdate()).validate()
    assert exc.value.message == "No valid fields to update"


@pytest.mark.parametrize(
    "body,message",
    [
        ({"title": None}, "Missing or invalid title"),
        ({"columnId": None}, "Missing or invalid columnId"),
    ],
)
def test_null_required_fields_are_rejected(body, message):
    with pytest.raises(ValidationError) as exc:
        TaskPatch.from_update(TaskUpdate.model_validate(body)).validate()
    assert exc.value.message == message
