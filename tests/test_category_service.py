from __future__ import annotations

import pytest

from household_api.core.errors import ConflictError, InvalidInputError, NotFoundError
from household_api.domain.categories import RecordStatus
from household_api.repositories.category_repository import CategoryRepository
from household_api.services.category_service import CategoryService


@pytest.fixture
def svc():
    return CategoryService()


def _create(svc, name, parent=0, **extra):
    return svc.create_category({"name": name, "parent_id": parent, **extra}).node


def _levels(svc, *nodes):
    repo = CategoryRepository()
    return [repo.get(n.id, RecordStatus.ANY).level for n in nodes]


def test_cleaning_depth_limit(svc):
    cleaning = _create(svc, "Cleaning")
    deep = _create(svc, "Deep Cleaning", cleaning.id)
    oven = _create(svc, "Oven Cleaning", deep.id)
    assert (cleaning.level, deep.level, oven.level) == (1, 2, 3)

    with pytest.raises(ConflictError) as exc:
        _create(svc, "Oven Door", oven.id)
    assert "3" in exc.value.message


def test_create_rejects_duplicate_and_bad_parent(svc):
    _create(svc, "Cleaning")
    with pytest.raises(ConflictError):
        _create(svc, "Cleaning")
    with pytest.raises(NotFoundError):
        _create(svc, "Orphan", 999)


def test_create_under_disabled_parent_rejected(svc):
    parent = _create(svc, "Repairs", is_enabled=False)
    with pytest.raises(ConflictError):
        _create(svc, "Plumbing", parent.id)


def test_create_validates_payload(svc):
    with pytest.raises(InvalidInputError) as exc:
        svc.create_category({"name": "", "icon": "not a url"})
    assert "name" in exc.value.errors
    assert "icon" in exc.value.errors


def test_deleted_name_can_be_reused(svc):
    node = _create(svc, "Laundry")
    svc.delete_category(node.id)
    again = _create(svc, "Laundry")
    assert again.id != node.id


def test_list_builds_ordered_forest(svc):
    b = _create(svc, "B", sort_order=2)
    a = _create(svc, "A", sort_order=1)
    _create(svc, "A2", a.id, sort_order=5)
    _create(svc, "A1", a.id, sort_order=1)
    _create(svc, "Hidden", b.id, is_enabled=False)

    listing = svc.list_categories()
    data = listing.to_dict()
    assert [c["name"] for c in data["categories"]] == ["A", "B"]
    assert [c["name"] for c in data["categories"][0]["children"]] == ["A1", "A2"]
    assert "children" not in data["categories"][1]
    assert data["total"] == 4

    with_disabled = svc.list_categories({"include_disabled": True})
    assert with_disabled.total == 5


def test_list_filters(svc):
    a = _create(svc, "A")
    child = _create(svc, "A1", a.id)
    _create(svc, "A11", child.id)

    top = svc.list_categories({"only_top_level": True}).to_dict()
    assert [c["name"] for c in top["categories"]] == ["A"]
    assert "children" not in top["categories"][0]

    second = svc.list_categories({"level": 2}).to_dict()
    assert [c["name"] for c in second["categories"]] == ["A1"]

    with pytest.raises(InvalidInputError):
        svc.list_categories({"level": 4})


def test_get_category_detail(svc):
    root = _create(svc, "Root")
    child = _create(svc, "Child", root.id)
    detail = svc.get_category(child.id).to_dict()
    assert detail["parent"] == {"id": root.id, "name": "Root", "level": 1}
    assert svc.get_category(root.id).to_dict()["children_count"] == 1
    with pytest.raises(NotFoundError):
        svc.get_category(12345)


def test_move_shifts_subtree_levels(svc):
    a = _create(svc, "A")
    b = _create(svc, "B")
    b1 = _create(svc, "B1", b.id)

    svc.update_category(b.id, {"parent_id": a.id})
    assert _levels(svc, b, b1) == [2, 3]

    svc.update_category(b.id, {"parent_id": 0})
    assert _levels(svc, b, b1) == [1, 2]


def test_move_rejects_cycles(svc):
    a = _create(svc, "A")
    b = _create(svc, "B", a.id)
    c = _create(svc, "C", b.id)

    with pytest.raises(ConflictError):
        svc.update_category(a.id, {"parent_id": a.id})
    with pytest.raises(ConflictError):
        svc.update_category(a.id, {"parent_id": c.id})
    assert _levels(svc, a, b, c) == [1, 2, 3]


def test_move_rejects_subtree_past_depth(svc):
    x = _create(svc, "X")
    y = _create(svc, "Y", x.id)
    a = _create(svc, "A")
    _create(svc, "A1", a.id)

    with pytest.raises(ConflictError):
        svc.update_category(a.id, {"parent_id": y.id})
    svc.update_category(a.id, {"parent_id": x.id})
    assert _levels(svc, a) == [2]


def test_update_rename_and_same_parent(svc):
    a = _create(svc, "A")
    _create(svc, "B")
    with pytest.raises(ConflictError):
        svc.update_category(a.id, {"name": "B"})
    detail = svc.update_category(a.id, {"name": "A+", "parent_id": 0, "description": "d"})
    assert detail.node.name == "A+"
    assert detail.node.description == "d"
    with pytest.raises(InvalidInputError):
        svc.update_category(a.id, {"name": None})


def test_update_disable_with_enabled_children_rejected(svc):
    a = _create(svc, "A")
    child = _create(svc, "A1", a.id)
    with pytest.raises(ConflictError):
        svc.update_category(a.id, {"is_enabled": False})

    svc.update_category(child.id, {"is_enabled": False})
    detail = svc.update_category(a.id, {"is_enabled": False})
    assert detail.node.is_enabled is False


def test_toggle_disable_cascades_and_enable_does_not(svc):
    a = _create(svc, "A")
    b = _create(svc, "B", a.id)
    c = _create(svc, "C", b.id)

    svc.toggle_status(a.id, False)
    repo = CategoryRepository()
    assert [repo.get(n.id).is_enabled for n in (a, b, c)] == [False, False, False]

    svc.toggle_status(a.id, True)
    assert [repo.get(n.id).is_enabled for n in (a, b, c)] == [True, False, False]


def test_delete_with_children_rejected(svc):
    a = _create(svc, "A")
    child = _create(svc, "A1", a.id)
    with pytest.raises(ConflictError):
        svc.delete_category(a.id)
    svc.delete_category(child.id)
    svc.delete_category(a.id)
    with pytest.raises(NotFoundError):
        svc.get_category(a.id)
    with pytest.raises(NotFoundError):
        svc.delete_category(a.id)


def test_batch_delete_is_all_or_nothing(svc):
    a = _create(svc, "A")
    _create(svc, "A1", a.id)
    lone = _create(svc, "Lone")

    with pytest.raises(ConflictError) as exc:
        svc.batch_delete([lone.id, a.id])
    assert '"A"' in exc.value.message
    assert svc.get_category(lone.id)

    with pytest.raises(NotFoundError):
        svc.batch_delete([lone.id, 999])
    with pytest.raises(InvalidInputError):
        svc.batch_delete([])

    other = _create(svc, "Other")
    assert svc.batch_delete([lone.id, other.id, lone.id]) == 2


def test_restore_checks_parent_and_name(svc):
    a = _create(svc, "A")
    child = _create(svc, "A1", a.id)
    svc.delete_category(child.id)
    svc.delete_category(a.id)

    with pytest.raises(ConflictError):
        svc.restore_category(child.id)
    svc.restore_category(a.id)
    restored = svc.restore_category(child.id)
    assert restored.node.level == 2
    assert restored.parent.id == a.id

    with pytest.raises(NotFoundError):
        svc.restore_category(child.id)

    gone = _create(svc, "Gone")
    svc.delete_category(gone.id)
    _create(svc, "Gone")
    with pytest.raises(ConflictError):
        svc.restore_category(gone.id)


def test_failed_move_rolls_back(svc, monkeypatch):
    a = _create(svc, "A")
    b = _create(svc, "B")
    b1 = _create(svc, "B1", b.id)

    def boom(self, ids, delta):
        raise RuntimeError("store failure")

    monkeypatch.setattr(CategoryRepository, "shift_levels", boom)
    with pytest.raises(RuntimeError):
        svc.update_category(b.id, {"parent_id": a.id})
    monkeypatch.undo()

    node = CategoryRepository().get(b.id)
    assert node.parent_id == 0
    assert _levels(svc, b, b1) == [1, 2]


def test_restore_rejects_level_past_depth_after_parent_moved(svc):
    a = _create(svc, "A")
    b = _create(svc, "B", a.id)
    c = _create(svc, "C", b.id)
    svc.delete_category(c.id)

    x = _create(svc, "X")
    y = _create(svc, "Y", x.id)
    svc.update_category(b.id, {"parent_id": y.id})
    assert _levels(svc, b) == [3]

    with pytest.raises(ConflictError):
        svc.restore_category(c.id)
    assert CategoryRepository().get(c.id, RecordStatus.DELETED) is not None


def test_restore_recomputes_level_of_deleted_descendant_after_move(svc):
    a = _create(svc, "A")
    b = _create(svc, "B", a.id)
    c = _create(svc, "C", b.id)
    svc.delete_category(c.id)

    svc.update_category(b.id, {"parent_id": 0})
    assert _levels(svc, b, c) == [1, 3]

    restored = svc.restore_category(c.id)
    assert restored.node.level == 2
    assert _levels(svc, c) == [2]


def test_list_level_zero_means_no_level_filter(svc):
    a = _create(svc, "A")
    _create(svc, "A1", a.id)
    listing = svc.list_categories({"level": 0}).to_dict()
    assert [c["name"] for c in listing["categories"]] == ["A"]
    assert listing["categories"][0]["children"][0]["name"] == "A1"
    assert listing["total"] == 2
