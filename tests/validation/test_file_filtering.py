# FILE: tests/validation/test_file_filtering.py

import pytest
from unittest.mock import patch
from skeleton_codebase import Config, SkeletonGenerator
from skeleton_codebase.config import MAX_FILE_SIZE_FOR_PARSING
from skeleton_codebase.generator import FileStatus, FileTask
import os


class TestFileFiltering:
    """Test file size and type gating"""

    def test_default_size_limit_skips_large_file(self, write_sources, temp_project_dir):
        """A 6 MiB Python file exceeds the 5 MiB default"""
        paths = write_sources({"small.py": "def small():\n    pass\n"})
        big = os.path.join(temp_project_dir, "big.py")
        with open(big, "w", encoding="utf-8") as f:
            f.write("# padding\n" * (6 * 1024 * 1024 // 10 + 1))
        output = os.path.join(temp_project_dir, "skeleton.xml")

        generator = SkeletonGenerator(Config(max_workers=2))
        generator.generate([paths["small.py"], big], output)

        assert generator.stats["files_processed"] == 1
        assert generator.stats["skipped_oversized"] == 1
        with open(output, "r", encoding="utf-8") as f:
            content = f.read()
        assert content.count("<file path=") == 1
        assert "padding" not in content

    def test_size_limit_is_inclusive(self, write_sources):
        """A file of exactly max_file_size bytes is still parsed"""
        content = "def f():\n    pass\n"
        paths = write_sources({"exact.py": content})
        limit = len(content.encode("utf-8"))

        at_limit = SkeletonGenerator(Config(max_file_size=limit, max_workers=1))
        below_limit = SkeletonGenerator(Config(max_file_size=limit - 1, max_workers=1))

        assert at_limit.run([paths["exact.py"]]).processed == 1
        assert below_limit.run([paths["exact.py"]]).skipped_oversized == 1

    def test_size_checked_before_type(self, temp_project_dir):
        """An oversized unsupported file counts as oversized"""
        big = os.path.join(temp_project_dir, "dump.log")
        with open(big, "w", encoding="utf-8") as f:
            f.write("x" * 2048)

        generator = SkeletonGenerator(Config(max_file_size=1024, max_workers=1))
        outcome = generator.process_file(FileTask.from_path(big))

        assert outcome.status is FileStatus.SKIPPED_OVERSIZED

    def test_oversized_file_never_opened(self, write_sources):
        """A supported file over the limit is skipped without being read"""
        paths = write_sources(
            {"big.py": "def big():\n    pass\n" * 200, "small.py": "def small():\n    pass\n"}
        )
        generator = SkeletonGenerator(Config(max_file_size=1024, max_workers=2))
        real_open = open
        opened = []

        def tracking_open(path, *args, **kwargs):
            opened.append(os.fspath(path))
            return real_open(path, *args, **kwargs)

        with patch("builtins.open", side_effect=tracking_open):
            result = generator.run(list(paths.values()))

        assert result.processed == 1
        assert result.skipped_oversized == 1
        assert paths["big.py"] not in opened
        assert paths["small.py"] in opened
        assert paths["big.py"] not in result.skeletons

    def test_unsupported_file_never_opened(self, generator, write_sources):
        """Only supported files are read"""
        paths = write_sources({"notes.txt": "plain text\n", "main.rs": "fn main() {}\n"})
        real_open = open
        opened = []

        def tracking_open(path, *args, **kwargs):
            opened.append(os.fspath(path))
            return real_open(path, *args, **kwargs)

        with patch("builtins.open", side_effect=tracking_open):
            result = generator.run(list(paths.values()))

        assert result.processed == 1
        assert result.skipped_unsupported == 1
        assert paths["notes.txt"] not in opened
        assert paths["main.rs"] in opened

    def test_default_constant(self):
        assert MAX_FILE_SIZE_FOR_PARSING == 5 * 1024 * 1024
        assert Config().max_file_size == MAX_FILE_SIZE_FOR_PARSING

    @pytest.mark.parametrize(
        "name,status",
        [
            ("ok.py", FileStatus.SKELETONIZED),
            ("ok.PY", FileStatus.SKELETONIZED),
            ("CMakeLists.txt", FileStatus.SKELETONIZED),
            ("ok.pyc", FileStatus.SKIPPED_UNSUPPORTED),
            ("noext", FileStatus.SKIPPED_UNSUPPORTED),
        ],
    )
    def test_type_gate(self, generator, write_sources, name, status):
        content = "project(demo)\n" if name == "CMakeLists.txt" else "import os\n"
        paths = write_sources({name: content})

        outcome = generator.process_file(FileTask.from_path(paths[name]))

        assert outcome.status is status
