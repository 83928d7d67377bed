# tests/test_cli.py
import subprocess
import sys
import os
import tempfile

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def run_cli(args: list[str], cwd: str = ROOT_DIR) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = ROOT_DIR + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.run(
        [sys.executable, "-m", "comprehension.cli"] + args,
        capture_output=True, text=True, cwd=cwd, env=env,
    )


def write_source(directory: str, text: str) -> str:
    path = os.path.join(directory, "source.comp")
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def test_no_args():
    result = run_cli([])
    assert result.returncode != 0
    assert "Usage" in result.stderr


def test_unknown_command():
    result = run_cli(["foobar"])
    assert result.returncode != 0


def test_check_valid():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[x * x; x <- 0..10]")
        result = run_cli(["check", path], cwd=tmpdir)
    assert result.returncode == 0
    assert "OK" in result.stdout


def test_check_undefined_variable():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[y; x <- 0..10]")
        result = run_cli(["check", path], cwd=tmpdir)
    assert result.returncode == 1
    assert "Undefined variable 'y'" in result.stderr


def test_check_missing_file():
    result = run_cli(["check", "/nonexistent/file.comp"])
    assert result.returncode != 0
    assert "not found" in result.stderr


def test_check_no_file_arg():
    result = run_cli(["check"])
    assert result.returncode != 0


def test_run_prints_items():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[x * x; x <- 0..10, x % 2 == 0]")
        result = run_cli(["run", path], cwd=tmpdir)
    assert result.returncode == 0
    assert result.stdout.split() == ["0", "4", "16", "36", "64"]


def test_run_take_limits_infinite_source():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[(i, j); i <- 1.., j <- 1..i, math.gcd(i, j) == 1]")
        result = run_cli(["run", path, "--take", "3"], cwd=tmpdir)
    assert result.returncode == 0
    assert result.stdout.splitlines() == ["(2, 1)", "(3, 1)", "(3, 2)"]


def test_run_take_from_config():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[n; n <- 0..]")
        with open(os.path.join(tmpdir, "comprehension.config"), "w") as f:
            f.write("cli:\n  take: 4\n")
        result = run_cli(["run", path], cwd=tmpdir)
    assert result.stdout.split() == ["0", "1", "2", "3"]


def test_run_bad_take():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[1;]")
        result = run_cli(["run", path, "--take", "many"], cwd=tmpdir)
    assert result.returncode == 1
    assert "--take" in result.stderr


def test_run_runtime_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[10 // x; x <- [1, 0]]")
        result = run_cli(["run", path], cwd=tmpdir)
    assert result.returncode == 1
    assert "ZeroDivisionError" in result.stderr


def test_run_skip_policy_logs_warning():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[10 // x; x <- [1, 0, 2]]")
        with open(os.path.join(tmpdir, "comprehension.config"), "w") as f:
            f.write("runtime:\n  on_error: skip\n")
        result = run_cli(["run", path], cwd=tmpdir)
    assert result.returncode == 0
    assert result.stdout.split() == ["10", "5"]
    assert "[comprehension] WARNING" in result.stderr


def test_bad_config_reported():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[1;]")
        with open(os.path.join(tmpdir, "comprehension.config"), "w") as f:
            f.write("runtime:\n  on_error: explode\n")
        result = run_cli(["run", path], cwd=tmpdir)
    assert result.returncode == 1
    assert "on_error" in result.stderr


def test_build_writes_python():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[x; x <- xs]")
        result = run_cli(["build", path], cwd=tmpdir)
        py_path = os.path.join(tmpdir, "source.py")
        assert result.returncode == 0
        assert "Built:" in result.stdout
        with open(py_path) as pf:
            content = pf.read()
    assert "import comprehension_runtime" in content
    assert "def pipeline(xs):" in content


def test_build_parse_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[x; x <- xs,]")
        result = run_cli(["build", path], cwd=tmpdir)
    assert result.returncode == 1
    assert "Error:" in result.stderr


def test_build_rejects_skip_policy():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[x; x <- xs]")
        with open(os.path.join(tmpdir, "comprehension.config"), "w") as f:
            f.write("runtime:\n  on_error: skip\n")
        result = run_cli(["build", path], cwd=tmpdir)
        assert not os.path.exists(os.path.join(tmpdir, "source.py"))
    assert result.returncode == 1
    assert "fail-fast" in result.stderr


def test_check_non_ascii_digit_reports_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_source(tmpdir, "[x; x <- [²]]")
        result = run_cli(["check", path], cwd=tmpdir)
    assert result.returncode == 1
    assert "Unexpected character" in result.stderr
    assert "Traceback" not in result.stderr
