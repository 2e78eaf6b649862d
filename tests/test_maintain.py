from pinvault.utils.helper import content_key
from pinvault.utils.maintain import check_integrity, repair


def test_clean_vault_is_ok(manager):
    manager.create_file("a", "x")
    assert check_integrity(manager).ok


def test_detects_and_repairs_both_kinds_of_drift(manager, store):
    keep = manager.create_file("keep", "k")
    dangling = manager.create_file("dangling", "d")
    store.delete(content_key(dangling.id))
    manager.content_store.write_content("orphan", "lost")

    report = check_integrity(manager)
    assert report.orphan_content == ["orphan"]
    assert report.missing_content == [dangling.id]

    repair(manager)
    assert check_integrity(manager).ok
    assert [r.id for r in manager.list_files()] == [keep.id]
    assert store.get(content_key("orphan")) is None
