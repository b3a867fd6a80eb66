"""Pytest configuration and fixtures."""
import json
import threading
from pathlib import Path

import pytest

from codebrowser.generator.processor import GenerationContext, UnitProcessor


class RecordingProcessor(UnitProcessor):
    """Unit processor that records every job instead of parsing it.

    Files named in ``fail`` return False, files named in ``crash`` raise.
    Successful jobs are recorded in fileIndex like a real processor would.
    """

    def __init__(self, fail=(), crash=()):
        self.jobs = []
        self.fail = set(fail)
        self.crash = set(crash)
        self._lock = threading.Lock()

    def process(self, job, context):
        with self._lock:
            self.jobs.append(job)
        if job.absolute_path in self.crash:
            raise RuntimeError(f"crashed on {job.absolute_path}")
        if job.absolute_path in self.fail:
            return False
        project = context.registry.resolve(job.absolute_path)
        context.output.add_file_index(context.registry.relative_name(job.absolute_path, project))
        return True

    @property
    def paths(self):
        return [job.absolute_path for job in self.jobs]


@pytest.fixture
def recording_processor():
    """Fresh recording unit processor."""
    return RecordingProcessor()


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / "out"


@pytest.fixture
def context(output_dir):
    """Generation context writing below a temporary output root."""
    with GenerationContext.create(str(output_dir)) as ctx:
        yield ctx


@pytest.fixture
def source_tree(tmp_path):
    """Small C++ project: two sources, one header, one README.

    Layout:
      src/a.cc  src/z.cc  src/m.cc (not in the database)
      src/include/util.h  src/README  src/.git/config
    """
    src = tmp_path / "src"
    (src / "include").mkdir(parents=True)
    (src / ".git").mkdir()
    (src / "a.cc").write_text('#include "include/util.h"\nint a() { return util(); }\n')
    (src / "z.cc").write_text("int z() { return 26; }\n")
    (src / "m.cc").write_text("int m() { return 13; }\n")
    (src / "include" / "util.h").write_text("inline int util() { return 1; }\n")
    (src / "README").write_text("Read <me> & enjoy\n")
    (src / ".git" / "config").write_text("[core]\n")
    return src


def write_compile_commands(path: Path, entries: list[dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


@pytest.fixture
def compile_db(tmp_path, source_tree):
    """compile_commands.json in build/ covering src/a.cc and src/z.cc."""
    entries = [
        {
            "directory": str(source_tree),
            "file": "a.cc",
            "arguments": ["clang++", "-c", "a.cc", "-o", "a.o", "-Iinclude"],
        },
        {
            "directory": str(source_tree),
            "file": str(source_tree / "z.cc"),
            "command": f"clang++ -c {source_tree / 'z.cc'} -o z.o -DNAME=z",
        },
    ]
    return write_compile_commands(tmp_path / "build" / "compile_commands.json", entries)
