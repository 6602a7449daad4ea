"""
Tests for retention decisions
"""

from datetime import datetime, timedelta, timezone

import pytest

from rotating_logging.naming import backup_name
from rotating_logging.retention import BackupFile, plan_retention, should_compress_file

NOW = datetime(2021, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_backup(days_ago, compressed=False):
    when = NOW - timedelta(days=days_ago)
    path = backup_name("/logs/foo.log", when)
    if compressed:
        path += ".gz"
    return BackupFile(path, when, compressed)


def names(backups):
    return sorted(b.name for b in backups)


class TestShouldCompressFile:
    @pytest.mark.parametrize(
        "keep,filename,expected",
        [
            (0, "foo.log", [True, True, True, True]),
            (2, "foo.log", [False, False, True, True]),
            (5, "foo.log", [False, False, False, False]),
            (0, "foo.log.gz", [False, False, False, False]),
        ],
    )
    def test_decisions(self, keep, filename, expected):
        got = [should_compress_file(keep, index, filename) for index in range(4)]
        assert got == expected


class TestBackupFile:
    def test_logical_name_strips_suffix(self):
        plain = make_backup(1)
        packed = make_backup(1, compressed=True)

        assert packed.name == plain.name + ".gz"
        assert packed.logical_name == plain.logical_name == plain.name


class TestPlanRetention:
    def test_nothing_configured(self):
        plan = plan_retention([make_backup(1), make_backup(400)], NOW)

        assert not plan
        assert plan.remove == [] and plan.compress == []

    def test_max_backups_keeps_newest(self):
        backups = [make_backup(days) for days in (5, 1, 3, 4, 2)]
        plan = plan_retention(backups, NOW, max_backups=2)

        assert names(plan.remove) == names([make_backup(d) for d in (3, 4, 5)])
        assert plan.compress == []

    def test_compressed_sibling_counts_once(self):
        backups = [
            make_backup(1),
            make_backup(1, compressed=True),
            make_backup(2),
        ]
        plan = plan_retention(backups, NOW, max_backups=1)

        assert names(plan.remove) == names([make_backup(2)])

    def test_max_age(self):
        backups = [make_backup(days) for days in (1, 2, 3, 10)]
        plan = plan_retention(backups, NOW, max_age=2)

        assert names(plan.remove) == names([make_backup(3), make_backup(10)])

    def test_naive_now_is_read_as_local_time(self):
        naive_now = NOW.astimezone().replace(tzinfo=None)
        plan = plan_retention([make_backup(1), make_backup(10)], naive_now, max_age=2)

        assert names(plan.remove) == names([make_backup(10)])

    def test_age_boundary_is_kept(self):
        plan = plan_retention([make_backup(2)], NOW, max_age=2)
        assert plan.remove == []

    def test_age_and_count_union_without_duplicates(self):
        backups = [make_backup(days) for days in (1, 2, 30, 40)]
        plan = plan_retention(backups, NOW, max_age=7, max_backups=3)

        assert names(plan.remove) == names([make_backup(30), make_backup(40)])
        assert len(plan.remove) == len(set(b.path for b in plan.remove))

    def test_compress_all(self):
        backups = [make_backup(1), make_backup(2), make_backup(3, compressed=True)]
        plan = plan_retention(backups, NOW, compress=True)

        assert names(plan.compress) == names([make_backup(1), make_backup(2)])

    def test_keep_last_decompressed(self):
        backups = [make_backup(days) for days in (1, 2, 3, 4)]
        plan = plan_retention(backups, NOW, compress=True, keep_last_decompressed=2)

        assert names(plan.compress) == names([make_backup(3), make_backup(4)])

    def test_sibling_does_not_use_up_keep_budget(self):
        backups = [
            make_backup(1),
            make_backup(2),
            make_backup(2, compressed=True),
            make_backup(3),
        ]
        plan = plan_retention(backups, NOW, compress=True, keep_last_decompressed=2)

        assert names(plan.compress) == names([make_backup(3)])

    def test_removed_files_are_not_compressed(self):
        backups = [make_backup(days) for days in (1, 2, 3, 20)]
        plan = plan_retention(
            backups, NOW, max_backups=2, max_age=10, compress=True
        )

        assert names(plan.remove) == names([make_backup(3), make_backup(20)])
        assert names(plan.compress) == names([make_backup(1), make_backup(2)])
        assert not set(plan.remove) & set(plan.compress)
