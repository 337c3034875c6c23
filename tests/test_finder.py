"""
Tests for file finders.

Story Test: deterministic discovery order with find-first priority
"""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dibuild.exceptions import FinderError
from dibuild.finder import CompilerPassFinder, ServiceFileFinder
from dibuild.options import CompilerPassFinderOptions, ServiceFileFinderOptions


def _finder(tmp_path, **options):
    return ServiceFileFinder(ServiceFileFinderOptions.from_dict(options, cwd=tmp_path), str(tmp_path))


class TestServiceFileFinder:
    """Test ServiceFileFinder ordering and filtering."""

    def test_find_first_scenario(self, write_file, tmp_path):
        """Test: find-first b.xml is processed before a.xml."""
        a = write_file('svc/a.xml')
        b = write_file('svc/b.xml')

        finder = _finder(tmp_path, directories=['svc'], files=['a.xml', 'b.xml'], find_first=['b.xml'])

        assert finder.find() == [b, a]

    def test_default_order_is_lexical(self, write_file, tmp_path):
        """Test: without find-first, directory then file name order."""
        a = write_file('svc/a.xml')
        b = write_file('svc/b.xml')
        nested = write_file('svc/sub/a.xml')

        finder = _finder(tmp_path, directories=['svc'], files=['a.xml', 'b.xml'])

        assert finder.find() == [a, b, nested]

    def test_find_first_appears_once(self, write_file, tmp_path):
        """Test: a find-first file that is also scanned occurs exactly once."""
        first = write_file('config/services.yaml')
        other = write_file('modules/services.yaml')

        finder = _finder(
            tmp_path,
            directories=['config', 'modules'],
            find_first=['modules/services.yaml'],
        )
        files = finder.find()

        assert files == [other, first]
        assert files.count(other) == 1

    def test_find_first_outside_scan(self, write_file, tmp_path):
        """Test: a find-first path outside the scanned directories is still included first."""
        scanned = write_file('config/services.yaml')
        outside = write_file('bootstrap/base.json')

        finder = _finder(tmp_path, directories=['config'], find_first=['bootstrap/base.json'])

        assert finder.find() == [outside, scanned]

    def test_find_first_order_preserved(self, write_file, tmp_path):
        """Test: several find-first entries keep the order given."""
        a = write_file('svc/a.xml')
        b = write_file('svc/b.xml')
        c = write_file('svc/c.xml')

        finder = _finder(tmp_path, directories=['svc'], files=['a.xml', 'b.xml', 'c.xml'], find_first=['c.xml', 'a.xml'])

        assert finder.find() == [c, a, b]

    def test_find_first_prefers_scanned_file(self, write_file, tmp_path):
        """Test: a scanned file wins over a same-named file in cwd."""
        write_file('services.yaml')
        scanned = write_file('config/services.yaml')
        other = write_file('config/other.yaml')

        finder = _finder(tmp_path, directories=['config'], find_first=['services.yaml'])

        assert finder.find() == [scanned, other]

    def test_missing_find_first_is_ignored(self, write_file, tmp_path, caplog):
        """Test: a find-first entry that does not exist is skipped with a warning."""
        a = write_file('svc/services.yaml')

        finder = _finder(tmp_path, directories=['svc'], find_first=['missing.yaml'])

        with caplog.at_level('WARNING', logger='dibuild'):
            assert finder.find() == [a]
        assert 'missing.yaml' in caplog.text

    def test_explicit_file_path(self, write_file, tmp_path):
        """Test: an entry containing a path separator is an explicit file."""
        explicit = write_file('elsewhere/custom.yml')
        scanned = write_file('config/services.yaml')

        finder = _finder(tmp_path, directories=['config'], files=['services.yaml', 'elsewhere/custom.yml'])

        assert finder.find() == [scanned, explicit]

    def test_missing_explicit_file(self, tmp_path):
        """Test: an explicit file that does not exist is a FinderError."""
        finder = _finder(tmp_path, files=['elsewhere/missing.yml'])

        with pytest.raises(FinderError) as exc_info:
            finder.find()

        assert exc_info.value.path == str(tmp_path / 'elsewhere' / 'missing.yml')

    def test_explicit_file_inside_scan_deduplicated(self, write_file, tmp_path):
        """Test: an explicit path that the scan also finds is listed once."""
        scanned = write_file('config/services.yaml')

        finder = _finder(tmp_path, directories=['config'], files=['services.yaml', 'config/services.yaml'])

        assert finder.find() == [scanned]

    def test_pattern(self, write_file, tmp_path):
        """Test: the pattern adds files matched by regex."""
        listed = write_file('config/services.yaml')
        matched = write_file('config/mail.services.json')
        write_file('config/readme.md')

        finder = _finder(tmp_path, directories=['config'], pattern=r'\.services\.json$')

        assert finder.find() == [matched, listed]

    def test_excluded_directories(self, write_file, tmp_path):
        """Test: excluded directory names are not descended into."""
        kept = write_file('config/services.yaml')
        write_file('config/node_modules/services.yaml')
        write_file('config/.git/services.yaml')

        finder = _finder(tmp_path, directories=['config'])

        assert finder.find() == [kept]

    def test_empty_result(self, tmp_path):
        """Test: nothing to find gives an empty list."""
        assert _finder(tmp_path).find() == []


class TestCompilerPassFinder:
    """Test CompilerPassFinder."""

    def test_default_pattern(self, write_file, tmp_path):
        """Test: *.cpass.py files are found, other python files are not."""
        a = write_file('src/a.cpass.py')
        b = write_file('src/nested/b.cpass.py')
        write_file('src/helpers.py')
        write_file('src/services.yaml')

        finder = CompilerPassFinder(
            CompilerPassFinderOptions.from_dict({'directories': ['src']}, cwd=tmp_path),
            str(tmp_path),
        )

        assert finder.find() == [a, b]

    def test_custom_pattern(self, write_file, tmp_path):
        """Test: a custom pattern replaces the default."""
        write_file('src/a.cpass.py')
        custom = write_file('src/passes_tags.py')

        finder = CompilerPassFinder(
            CompilerPassFinderOptions.from_dict({'directories': ['src'], 'pattern': r'^passes_.*\.py$'}, cwd=tmp_path),
            str(tmp_path),
        )

        assert finder.find() == [custom]
