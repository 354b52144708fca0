import pytest

from roadtrip.overpass import AreaScope
from roadtrip.subjects import DEFAULT_SUBJECTS, Subject, load_subjects


def test_subject_key_and_scope():
    subject = Subject(name="  Taco John's ", filter='"brand"="Taco John\'s"', sub_regions=True)
    assert subject.name == "Taco John's"
    assert subject.key == "taco-johns"
    assert subject.scope is AreaScope.CONTIGUOUS_US


def test_default_catalog_keys_are_unique():
    keys = [s.key for s in DEFAULT_SUBJECTS]
    assert len(keys) == len(set(keys))


def test_load_subjects_skips_invalid_entries(tmp_path):
    path = tmp_path / "subjects.yaml"
    path.write_text(
        "- name: Wingstop\n"
        "  filter: '\"brand\"=\"Wingstop\"'\n"
        "- filter: missing name\n"
        "- name: Krispy Kreme\n"
        "  sub_regions: true\n"
    )
    subjects = load_subjects(path)
    assert [s.key for s in subjects] == ["wingstop", "krispy-kreme"]
    assert subjects[1].sub_regions is True


def test_load_subjects_rejects_duplicates(tmp_path):
    path = tmp_path / "subjects.yaml"
    path.write_text("- name: Wingstop\n- name: wingstop\n")
    with pytest.raises(ValueError):
        load_subjects(path)
