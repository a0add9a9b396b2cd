"""
Unit tests for the stackmonitor command-line interface.
"""

import sys
import textwrap

import pytest

from stackmonitor.cli.main import build_parser, format_hot_spots, main_cli, run_script
from stackmonitor.models.snapshot import ProfileSnapshot
from stackmonitor.profiler.engine import SamplingEngine


def write_script(directory, body, name="job.py"):
    script = directory / name
    script.write_text(textwrap.dedent(body))
    return script


@pytest.mark.unit
class TestBuildParser:
    """Test cases for argument parsing."""

    def test_script_arguments_are_forwarded(self):
        args = build_parser().parse_args(["-p", "app", "--period", "20", "job.py", "--size", "3"])

        assert str(args.script) == "job.py"
        assert args.script_args == ["--size", "3"]
        assert args.packages == ["app"]
        assert args.period == 20
        assert args.top == 20


@pytest.mark.unit
class TestFormatHotSpots:
    """Test cases for the hot-spot report."""

    def test_empty_snapshot(self):
        assert format_hot_spots(ProfileSnapshot(), 10) == "No profiled frame was sampled."

    def test_rows_ordered_by_time_and_limited(self, test_utils):
        engine = SamplingEngine()
        engine.sample([test_utils.thread("main", ["app.A.m1", "app.B.m2"])], {"app"}, 50)
        snapshot = engine.sample([test_utils.thread("main", ["app.A.m1"])], {"app"}, 50)

        lines = format_hot_spots(snapshot, top=1).splitlines()

        assert lines[0].split() == ["Method", "Thread", "Time", "(ms)", "Calls"]
        assert len(lines) == 3
        assert lines[2].split() == ["app.A.m1()", "main", "100", "1"]


@pytest.mark.unit
class TestRunScript:
    """Test cases for running the profiled script."""

    def test_success(self, temp_dir):
        script = write_script(temp_dir, "import sys\nassert sys.argv[1:] == ['a']\n")
        saved_argv = list(sys.argv)

        assert run_script(script, ["a"]) == 0
        assert sys.argv == saved_argv

    def test_exit_codes(self, temp_dir):
        assert run_script(write_script(temp_dir, "raise SystemExit(3)\n"), []) == 3
        assert run_script(write_script(temp_dir, "raise SystemExit()\n"), []) == 0
        assert run_script(write_script(temp_dir, "raise SystemExit('bad')\n"), []) == 1

    def test_uncaught_exception(self, temp_dir):
        assert run_script(write_script(temp_dir, "raise RuntimeError('boom')\n"), []) == 1


@pytest.mark.unit
class TestMainCli:
    """Test cases for main_cli."""

    BUSY_SCRIPT = """
        import time

        def work(seconds):
            end = time.monotonic() + seconds
            while time.monotonic() < end:
                sum(range(1000))

        work(0.3)
    """

    def test_profile_and_export(self, config_files, temp_dir, capsys):
        script = write_script(temp_dir, self.BUSY_SCRIPT)
        output_dir = temp_dir / "out"

        main_cli([
            "--config", str(config_files["config"]),
            "--output-dir", str(output_dir),
            "-p", "<default>",
            "--period", "10",
            str(script),
        ])

        assert (output_dir / "hot_spots.parquet").exists()
        assert (output_dir / "call_tree.parquet").exists()
        assert (output_dir / "threads.parquet").exists()
        assert (output_dir / "metadata.json").exists()
        assert "Method" in capsys.readouterr().out

    def test_no_export(self, config_files, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        script = write_script(temp_dir, "pass\n")

        main_cli(["--config", str(config_files["config"]), "--no-export", str(script)])

        assert not (temp_dir / "logs").exists()
        assert "No profiled frame was sampled." in capsys.readouterr().out

    def test_script_exit_code_propagates(self, config_files, temp_dir):
        script = write_script(temp_dir, "raise SystemExit(4)\n")

        with pytest.raises(SystemExit) as excinfo:
            main_cli(["--config", str(config_files["config"]), "--no-export", str(script)])
        assert excinfo.value.code == 4

    @pytest.mark.parametrize(
        "extra_args",
        [["--period", "0"], ["--top", "0"], ["-p", "bad spec!"]],
    )
    def test_invalid_arguments(self, config_files, temp_dir, extra_args):
        script = write_script(temp_dir, "pass\n")

        with pytest.raises(SystemExit) as excinfo:
            main_cli(["--config", str(config_files["config"]), *extra_args, str(script)])
        assert excinfo.value.code == 2

    def test_missing_script(self, config_files, temp_dir):
        with pytest.raises(SystemExit) as excinfo:
            main_cli(["--config", str(config_files["config"]), str(temp_dir / "nope.py")])
        assert excinfo.value.code == 2

    def test_missing_config(self, temp_dir):
        script = write_script(temp_dir, "pass\n")

        with pytest.raises(SystemExit) as excinfo:
            main_cli(["--config", str(temp_dir / "missing.toml"), str(script)])
        assert excinfo.value.code == 1
