"""Tests for query and schema glob expansion and output dir deduction."""

from pathlib import Path

import pytest

from pgquerygen.core.exceptions import InputError
from pgquerygen.core.paths import deduce_output_dir, expand_sort_globs


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return path


@pytest.mark.unit
class TestExpandSortGlobs:
    def test_sorted_within_pattern(self, temp_dir):
        for name in ("c.sql", "a.sql", "b.sql"):
            _touch(temp_dir / name)
        files = expand_sort_globs([str(temp_dir / "*.sql")])
        assert [f.name for f in files] == ["a.sql", "b.sql", "c.sql"]

    def test_patterns_keep_their_order(self, temp_dir):
        _touch(temp_dir / "types" / "z.sql")
        _touch(temp_dir / "tables" / "a.sql")
        files = expand_sort_globs(
            [str(temp_dir / "types" / "*.sql"), str(temp_dir / "tables" / "*.sql")]
        )
        assert [f.parent.name for f in files] == ["types", "tables"]

    def test_plain_path(self, temp_dir):
        path = _touch(temp_dir / "schema.sql")
        assert expand_sort_globs([str(path)]) == [path.resolve()]

    def test_missing_plain_path(self, temp_dir):
        with pytest.raises(InputError, match="File does not exist"):
            expand_sort_globs([str(temp_dir / "missing.sql")])

    def test_unmatched_glob_is_empty(self, temp_dir):
        assert expand_sort_globs([str(temp_dir / "*.sql")]) == []

    def test_directories_skipped(self, temp_dir):
        (temp_dir / "dir.sql").mkdir()
        _touch(temp_dir / "file.sql")
        files = expand_sort_globs([str(temp_dir / "*.sql")])
        assert [f.name for f in files] == ["file.sql"]

    def test_recursive_glob(self, temp_dir):
        _touch(temp_dir / "a" / "b" / "deep.sql")
        files = expand_sort_globs([str(temp_dir / "**" / "*.sql")])
        assert [f.name for f in files] == ["deep.sql"]

    def test_results_are_absolute(self, temp_dir):
        _touch(temp_dir / "q.sql")
        (path,) = expand_sort_globs([str(temp_dir / "*.sql")])
        assert path.is_absolute()


@pytest.mark.unit
class TestDeduceOutputDir:
    def test_explicit_dir_wins(self, temp_dir):
        files = [Path("/a/q.sql"), Path("/b/q.sql")]
        assert deduce_output_dir(files, temp_dir) == temp_dir

    def test_shared_parent(self):
        files = [Path("/queries/a.sql"), Path("/queries/b.sql")]
        assert deduce_output_dir(files, None) == Path("/queries")

    def test_different_dirs(self):
        files = [Path("/a/q.sql"), Path("/b/q.sql")]
        with pytest.raises(InputError, match="specify explicitly with --output-dir"):
            deduce_output_dir(files, None)

    def test_no_files(self):
        with pytest.raises(InputError, match="No query files"):
            deduce_output_dir([], None)
