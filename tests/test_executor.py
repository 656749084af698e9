"""
Tests for the generator adapter and the sequential executor.
"""

import sys
from pathlib import Path

import pytest

from iacgraph.adapters import GeneratorAdapter, MockAdapter
from iacgraph.core.engine.executor import execute_plan
from iacgraph.core.engine.planner import GeneratorCatalog, plan_generation
from iacgraph.core.errors import ExecutionError, OutputMissing
from iacgraph.core.models.generation import GenerationRequest, GenerationStep, ModuleSpec
from iacgraph.core.models.settings import Settings

from conftest import MERGED, write_generator


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    d = tmp_path / "work"
    d.mkdir()
    return d


@pytest.fixture
def adapter() -> GeneratorAdapter:
    return GeneratorAdapter([sys.executable], timeout=30)


def _step(program: Path, work_dir: Path, index: int = 0, args: tuple[str, ...] = ()) -> GenerationStep:
    return GenerationStep(
        index=index,
        label=f"step:{index}",
        program=program,
        arguments=args,
        output_dir=work_dir,
    )


# ── Adapter ─────────────────────────────────────────────────────────


class TestGeneratorAdapter:
    def test_success(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        prog = write_generator(tmp_path / "ok.py", "# ok", stdout="generated")
        receipt = adapter.execute(_step(prog, work_dir, args=("-p", "aws")))
        assert receipt.ok
        assert receipt.output == "generated"
        assert receipt.return_code == 0
        assert receipt.command == [sys.executable, str(prog), "-p", "aws", "-o", str(work_dir)]
        assert (work_dir / MERGED).read_text() == "# ok -p aws\n"

    def test_stderr_with_zero_exit_is_failure(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        prog = write_generator(tmp_path / "warn.py", "# warn", stderr="deprecated flag")
        receipt = adapter.execute(_step(prog, work_dir))
        assert receipt.failed
        assert receipt.return_code == 0
        assert receipt.error == "deprecated flag"

    def test_nonzero_exit_is_failure(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        prog = write_generator(tmp_path / "bad.py", "# bad", exit_code=3)
        receipt = adapter.execute(_step(prog, work_dir))
        assert receipt.failed
        assert receipt.return_code == 3
        assert "code 3" in receipt.error

    def test_missing_runner_is_failure(self, tmp_path: Path, work_dir: Path):
        adapter = GeneratorAdapter(["definitely-not-a-runner-xyz"])
        receipt = adapter.execute(_step(tmp_path / "gen.py", work_dir))
        assert receipt.failed
        assert "Cannot launch" in receipt.error
        assert not adapter.is_available()

    def test_timeout_is_failure(self, tmp_path: Path, work_dir: Path):
        prog = tmp_path / "slow.py"
        prog.write_text("import time\ntime.sleep(5)\n")
        adapter = GeneratorAdapter([sys.executable], timeout=0.2)
        receipt = adapter.execute(_step(prog, work_dir))
        assert receipt.failed
        assert "timed out" in receipt.error

    def test_undecodable_stdout_does_not_raise(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        prog = tmp_path / "binary.py"
        prog.write_text("import sys\nsys.stdout.buffer.write(b'\\xff\\xfe bad')\n")
        receipt = adapter.execute(_step(prog, work_dir))
        assert receipt.ok
        assert "\ufffd" in receipt.output

    def test_undecodable_stderr_is_failure(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        prog = tmp_path / "binary_err.py"
        prog.write_text("import sys\nsys.stderr.buffer.write(b'\\xff oops')\nsys.exit(1)\n")
        receipt = adapter.execute(_step(prog, work_dir))
        assert receipt.failed
        assert "oops" in receipt.error

    def test_unexpected_error_becomes_receipt(
        self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter, monkeypatch: pytest.MonkeyPatch,
    ):
        def explode(*args, **kwargs):
            raise ValueError("bad pipe state")

        monkeypatch.setattr("iacgraph.adapters.generator.subprocess.run", explode)
        receipt = adapter.execute(_step(tmp_path / "gen.py", work_dir))
        assert receipt.failed
        assert "bad pipe state" in receipt.error


# ── Executor ────────────────────────────────────────────────────────


class TestExecutePlan:
    def test_end_to_end_markers_in_order(self, settings: Settings, work_dir: Path, adapter: GeneratorAdapter):
        req = GenerationRequest(
            provider="aws",
            modules=[ModuleSpec(name="VPC", args=["--cidr", "10.0.0.0/16"])],
        )
        plan = plan_generation(req, work_dir, GeneratorCatalog.from_settings(settings))
        report = execute_plan(plan, adapter, merged_file=MERGED)

        assert report.ok
        assert report.executed == 2
        lines = report.config.splitlines()
        assert lines == ["# provider -p aws", "# VPC --cidr 10.0.0.0/16"]

    def test_failing_step_stops_run(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        """Step 2 fails: step 3 must never start."""
        gens = tmp_path / "stubs"
        sentinel = tmp_path / "step3-ran"
        steps = [
            _step(write_generator(gens / "p.py", "# p", mode="w"), work_dir, 0),
            _step(write_generator(gens / "m1.py", "# m1"), work_dir, 1),
            _step(write_generator(gens / "m2.py", "# m2", stderr="bad cidr", exit_code=1), work_dir, 2),
            _step(write_generator(gens / "m3.py", "# m3", sentinel=sentinel), work_dir, 3),
        ]
        from iacgraph.core.models.generation import GenerationPlan

        plan = GenerationPlan(provider="aws", working_dir=work_dir, steps=steps)
        report = execute_plan(plan, adapter, merged_file=MERGED)

        assert not report.ok
        assert isinstance(report.error, ExecutionError)
        assert report.error.step_index == 2
        assert str(gens / "m2.py") in report.error.command
        assert "bad cidr" in report.error.reason
        assert report.failed_step == 2
        assert report.executed == 3
        assert report.config is None
        assert not sentinel.exists()

    def test_output_missing(self, tmp_path: Path, work_dir: Path, adapter: GeneratorAdapter):
        prog = tmp_path / "silent.py"
        prog.write_text("import sys\n")
        from iacgraph.core.models.generation import GenerationPlan

        plan = GenerationPlan(provider="aws", working_dir=work_dir, steps=[_step(prog, work_dir)])
        report = execute_plan(plan, adapter, merged_file=MERGED)
        assert isinstance(report.error, OutputMissing)
        assert report.error.kind == "output_missing"
        assert report.executed == 1

    def test_report_to_dict(self, settings: Settings, work_dir: Path):
        mock = MockAdapter(merged_file=MERGED)
        mock.set_failure(1, "nope")
        req = GenerationRequest(provider="aws", modules=[ModuleSpec(name="VPC"), ModuleSpec(name="EC2")])
        plan = plan_generation(req, work_dir, GeneratorCatalog.from_settings(settings))
        report = execute_plan(plan, mock, merged_file=MERGED)

        d = report.to_dict()
        assert d["status"] == "failed"
        assert d["planned"] == 3
        assert d["executed"] == 2
        assert d["error"]["kind"] == "generator_failed"
        assert d["error"]["detail"]["step_index"] == 1
        assert mock.call_count == 2


class TestMockAdapter:
    def test_records_calls_and_writes_markers(self, settings: Settings, work_dir: Path):
        mock = MockAdapter(merged_file=MERGED)
        req = GenerationRequest(provider="aws", modules=[ModuleSpec(name="VPC", args=["x"])])
        plan = plan_generation(req, work_dir, GeneratorCatalog.from_settings(settings))
        report = execute_plan(plan, mock, merged_file=MERGED)

        assert report.ok
        assert [s.label for s in mock.call_log] == ["provider:aws", "module:VPC"]
        assert report.config == "# provider:aws -p aws\n# module:VPC x\n"
