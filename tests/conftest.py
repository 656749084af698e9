"""
Shared test fixtures: stub generator programs and settings that run them.

Stub generators are tiny Python scripts launched with ``sys.executable``
as the runner.  Each writes one marker line into the merged file in the
directory given by ``-o``.
"""

from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

from iacgraph.core.models.settings import Settings
from iacgraph.core.services.event_bus import EventBus
from iacgraph.core.services.watch_service import DirectoryWatcher

MERGED = "generatedFile.tf"


def write_generator(
    path: Path,
    marker: str,
    *,
    mode: str = "a",
    stderr: str = "",
    exit_code: int = 0,
    stdout: str = "",
    sentinel: Path | None = None,
) -> Path:
    """Write a stub generator script.

    Args:
        path: Where the script goes (parents are created).
        marker: Line prefix written to the merged file.
        mode: "w" to start the file (provider), "a" to append (modules).
        stderr: Text written to stderr after writing the marker.
        exit_code: Process exit status.
        stdout: Text written to stdout.
        sentinel: File touched when the script runs at all.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    touch = str(sentinel) if sentinel else ""
    path.write_text(textwrap.dedent(f"""\
        import sys
        from pathlib import Path

        argv = sys.argv[1:]
        cut = argv.index("-o")
        out = Path(argv[cut + 1])
        if {touch!r}:
            Path({touch!r}).touch()
        with open(out / {MERGED!r}, {mode!r}, encoding="utf-8") as f:
            f.write(" ".join([{marker!r}, *argv[:cut]]) + "\\n")
        if {stdout!r}:
            print({stdout!r})
        if {stderr!r}:
            sys.stderr.write({stderr!r})
        sys.exit({exit_code})
    """))
    return path


@pytest.fixture
def generators_dir(tmp_path: Path) -> Path:
    """Provider generator plus VPC and EC2 module generators for aws."""
    root = tmp_path / "generators"
    write_generator(root / "generateTerraform.py", "# provider", mode="w")
    write_generator(root / "module" / "aws" / "generateVPCTerraform.py", "# VPC")
    write_generator(root / "module" / "aws" / "generateEC2Terraform.py", "# EC2")
    return root


@pytest.fixture
def settings(tmp_path: Path, generators_dir: Path) -> Settings:
    return Settings(
        generators_dir=generators_dir,
        runner=[sys.executable],
        provider_generator="generateTerraform.py",
        module_generator="module/{provider}/generate{name}Terraform.py",
        watch_root=tmp_path / ".watch",
        output_dir=tmp_path / "output",
        poll_interval=0.05,
        start_timeout=10.0,
        step_timeout=30.0,
    )


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def watcher(settings: Settings, event_bus: EventBus):  # type: ignore[no-untyped-def]
    w = DirectoryWatcher(
        settings.watch_root,
        settings.output_dir,
        extension=settings.artifact_extension,
        poll_interval=settings.poll_interval,
        event_bus=event_bus,
    )
    yield w
    w.stop()
