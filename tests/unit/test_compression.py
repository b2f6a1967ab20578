"""
Unit tests for compression module (dbbackup/core/compression.py).
"""

import zipfile
from unittest.mock import patch

import pytest

from dbbackup.core.compression import (
    compress_artifact,
    compress_backup_file,
    compressed_file_path,
)
from dbbackup.core.exceptions import CompressionError
from dbbackup.core.models import ArtifactStage, BackupArtifact, DatabaseKind


@pytest.fixture
def dump_file(tmp_path):
    path = tmp_path / "shop-backup.sql"
    path.write_text("CREATE TABLE t (id int);\n" * 500)
    return path


class TestCompressBackupFile:

    def test_single_entry_identical_content(self, dump_file, tmp_path):
        target = tmp_path / "shop-backup.zip"

        result = compress_backup_file(dump_file, target)

        assert result == target
        with zipfile.ZipFile(target) as zipf:
            assert zipf.namelist() == ["shop-backup.sql"]
            assert zipf.read("shop-backup.sql") == dump_file.read_bytes()
            assert zipf.infolist()[0].compress_type == zipfile.ZIP_DEFLATED

    def test_compresses(self, dump_file, tmp_path):
        target = compress_backup_file(dump_file, tmp_path / "shop-backup.zip")

        assert target.stat().st_size < dump_file.stat().st_size

    def test_no_partial_file_left(self, dump_file, tmp_path):
        compress_backup_file(dump_file, tmp_path / "shop-backup.zip")

        assert not (tmp_path / "shop-backup.zip.part").exists()

    def test_overwrites_existing_archive(self, dump_file, tmp_path):
        target = tmp_path / "shop-backup.zip"
        target.write_bytes(b"stale")

        compress_backup_file(dump_file, target)

        with zipfile.ZipFile(target) as zipf:
            assert zipf.testzip() is None

    def test_missing_source(self, tmp_path):
        with pytest.raises(CompressionError, match="does not exist"):
            compress_backup_file(tmp_path / "missing.sql", tmp_path / "missing.zip")

        assert not (tmp_path / "missing.zip").exists()

    def test_writer_error_removes_partial_archive(self, dump_file, tmp_path):
        target = tmp_path / "shop-backup.zip"

        with patch("dbbackup.core.compression.zipfile.ZipFile.write", side_effect=OSError("No space left on device")):
            with pytest.raises(CompressionError, match="No space left"):
                compress_backup_file(dump_file, target)

        assert not target.exists()
        assert not (tmp_path / "shop-backup.zip.part").exists()

    def test_failed_rerun_keeps_previous_archive_intact(self, dump_file, tmp_path):
        target = compress_backup_file(dump_file, tmp_path / "shop-backup.zip")
        previous = target.read_bytes()

        with patch("dbbackup.core.compression.os.replace", side_effect=OSError("rename failed")):
            with pytest.raises(CompressionError):
                compress_backup_file(dump_file, target)

        assert target.read_bytes() == previous


class TestCompressArtifact:

    def test_derives_zip_next_to_raw_export(self, dump_file):
        raw = BackupArtifact(kind=DatabaseKind.MYSQL, path=dump_file, stage=ArtifactStage.RAW_EXPORT)

        compressed = compress_artifact(raw)

        assert compressed.path == dump_file.with_name("shop-backup.zip")
        assert compressed.stage == ArtifactStage.COMPRESSED
        assert compressed.kind == DatabaseKind.MYSQL
        assert dump_file.exists()

    @pytest.mark.parametrize("name,expected", [
        ("shop-backup.sql", "shop-backup.zip"),
        ("shop-backup.json", "shop-backup.zip"),
    ])
    def test_compressed_file_path(self, tmp_path, name, expected):
        assert compressed_file_path(tmp_path / name).name == expected
