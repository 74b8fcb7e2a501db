"""Tests for chapter count resolution against the curriculum catalog."""
import logging

import pytest

from mentor.catalog import (
    list_chapters, list_subjects, lookup, resolve_chapter_count, resolve_subjects,
    upsert_chapter_count,
)
from mentor.db import init_db
from mentor.errors import StorageError


def test_lookup_found(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    assert lookup(tmp_db, 5, "Math") == (12, True)


def test_lookup_miss(tmp_db):
    init_db(tmp_db)
    assert lookup(tmp_db, 5, "Math") == (0, False)


def test_lookup_is_case_sensitive(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    assert lookup(tmp_db, 5, "math") == (0, False)


def test_lookup_zero_count_is_a_miss(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Art", 0)
    assert lookup(tmp_db, 5, "Art") == (0, False)


def test_resolve_exact(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    assert resolve_chapter_count(tmp_db, 5, "Math") == 12


def test_resolve_case_insensitive_fallback(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    assert resolve_chapter_count(tmp_db, 5, "MATH") == 12
    assert resolve_chapter_count(tmp_db, 5, " math ") == 12


def test_resolve_defaults_to_15(tmp_db):
    init_db(tmp_db)
    assert resolve_chapter_count(tmp_db, 5, "Science") == 15


def test_resolve_default_for_other_class(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 6, "Science", 9)
    assert resolve_chapter_count(tmp_db, 5, "Science") == 15


def test_resolve_degrades_when_catalog_missing(tmp_db, caplog):
    # No init_db: the chapters table does not exist.
    with caplog.at_level(logging.WARNING, logger="mentor.catalog"):
        assert resolve_chapter_count(tmp_db, 5, "Math") == 15
    assert "Catalog lookup failed" in caplog.text


def test_resolve_subjects_sums_counts(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    upsert_chapter_count(tmp_db, 5, "Science", 15)
    total, counts = resolve_subjects(tmp_db, 5, ["Math", "Science"])
    assert total == 27
    assert counts == {"Math": 12, "Science": 15}


def test_resolve_subjects_mixes_default(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    total, counts = resolve_subjects(tmp_db, 5, ["Math", "Art"])
    assert total == 27
    assert counts["Art"] == 15


def test_upsert_replaces_count(tmp_db):
    init_db(tmp_db)
    upsert_chapter_count(tmp_db, 5, "Math", 12)
    upsert_chapter_count(tmp_db, 5, "Math", 14)
    assert lookup(tmp_db, 5, "Math") == (14, True)


def test_list_chapters_and_subjects(seeded_db):
    all_entries = list_chapters(seeded_db)
    class5 = list_chapters(seeded_db, 5)
    assert len(all_entries) > len(class5) > 0
    assert all(e.class_level == 5 for e in class5)
    assert [e.subject for e in class5] == sorted(e.subject for e in class5)
    assert list_subjects(seeded_db, 5) == ["Bangla", "English", "Math"]


def test_catalog_listing_on_broken_store_raises_storage_error(tmp_db):
    with pytest.raises(StorageError):
        list_chapters(tmp_db)
    with pytest.raises(StorageError):
        list_subjects(tmp_db, 5)
    with pytest.raises(StorageError):
        upsert_chapter_count(tmp_db, 5, "Math", 12)
