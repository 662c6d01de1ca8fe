from pathlib import Path

import pytest

from errorgen.compiler import cli
from errorgen.compiler.config import ConfigError, load_config
from errorgen.compiler.pipeline import compile_file, default_output_path
from tests.conftest import CACHE_ERRORS


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NO_COLOR", "1")
    (tmp_path / "cache.errors").write_text(CACHE_ERRORS, encoding="utf-8")
    return tmp_path


def test_argument_parser_defaults() -> None:
    args = cli.build_arg_parser().parse_args(["a.errors"])

    assert args.sources == ["a.errors"]
    assert args.out is None
    assert args.check is False
    assert args.lenient_placeholders is False
    assert args.runtime_module is None


def test_generates_module_next_to_source(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors"]) == 0

    out = workdir / "cache_errors.py"
    assert out.read_text(encoding="utf-8").startswith("# Generated by errorgen")
    assert f"Generated {Path('cache_errors.py')}" in capsys.readouterr().out


def test_out_option_and_out_dir(workdir: Path) -> None:
    assert cli.main(["cache.errors", "-o", "gen/errs.py"]) == 0
    assert (workdir / "gen" / "errs.py").is_file()

    assert cli.main(["cache.errors", "--out-dir", "build"]) == 0
    assert (workdir / "build" / "cache_errors.py").is_file()


def test_out_requires_single_source(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors", "cache.errors", "-o", "x.py"]) == 2
    assert "exactly one source" in capsys.readouterr().err


def test_stdout_writes_nothing(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors", "--stdout"]) == 0

    assert "class CacheError(_eg_rt.ErrorEnum):" in capsys.readouterr().out
    assert not (workdir / "cache_errors.py").exists()


def test_check_detects_stale_output(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors", "--check"]) == 2
    assert "out of date" in capsys.readouterr().err

    assert cli.main(["cache.errors"]) == 0
    assert cli.main(["cache.errors", "--check"]) == 0


def test_errors_block_output_and_exit_2(workdir: Path, capsys) -> None:
    (workdir / "bad.errors").write_text("enum E { V }\n", encoding="utf-8")

    assert cli.main(["bad.errors"]) == 2
    assert "CE1004" in capsys.readouterr().err
    assert not (workdir / "bad_errors.py").exists()


def test_warnings_exit_1(workdir: Path, capsys) -> None:
    (workdir / "warn.errors").write_text('enum E { #[error = "m"] #[retry] V }\n', encoding="utf-8")

    assert cli.main(["warn.errors"]) == 1
    assert "CW1002" in capsys.readouterr().err
    assert (workdir / "warn_errors.py").is_file()


def test_worst_status_wins_across_files(workdir: Path) -> None:
    (workdir / "bad.errors").write_text("enum E { V }\n", encoding="utf-8")
    assert cli.main(["cache.errors", "bad.errors"]) == 2
    assert (workdir / "cache_errors.py").is_file()


def test_unreadable_source(workdir: Path, capsys) -> None:
    assert cli.main(["missing.errors"]) == 2
    assert "cannot read" in capsys.readouterr().err


def test_no_sources(capsys) -> None:
    assert cli.main([]) == 2


def test_version_banner(capsys) -> None:
    assert cli.main(["--version"]) == 0
    assert capsys.readouterr().out.startswith("errorgen ")


def test_dump_ir(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors", "--stdout", "--dump-ir"]) == 0
    assert "enum CacheError [top_level]" in capsys.readouterr().out


def test_timings_go_to_stderr(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors", "--stdout", "--timings"]) == 0
    err = capsys.readouterr().err
    for stage in ("parse", "build", "generate"):
        assert stage in err


def test_pyproject_settings_apply(workdir: Path, capsys) -> None:
    (workdir / "pyproject.toml").write_text(
        '[tool.errorgen]\nstrict-placeholders = false\nruntime-module = "app.rt"\nout-dir = "out"\n',
        encoding="utf-8",
    )
    (workdir / "lenient.errors").write_text('enum E { #[error = "got {}"] V }\n', encoding="utf-8")

    assert cli.main(["lenient.errors"]) == 0
    code = (workdir / "out" / "lenient_errors.py").read_text(encoding="utf-8")
    assert "import app.rt as _eg_rt" in code


def test_cli_flags_override_pyproject(workdir: Path) -> None:
    (workdir / "pyproject.toml").write_text('[tool.errorgen]\nruntime-module = "app.rt"\n', encoding="utf-8")

    assert cli.main(["cache.errors", "--runtime-module", "other.rt"]) == 0
    assert "import other.rt as _eg_rt" in (workdir / "cache_errors.py").read_text(encoding="utf-8")


def test_lenient_flag(workdir: Path) -> None:
    (workdir / "lenient.errors").write_text('enum E { #[error = "got {}"] V }\n', encoding="utf-8")

    assert cli.main(["lenient.errors"]) == 2
    assert cli.main(["lenient.errors", "--lenient-placeholders"]) == 0


def test_mistyped_config_value(workdir: Path, capsys) -> None:
    (workdir / "pyproject.toml").write_text('[tool.errorgen]\nstrict-placeholders = "no"\n', encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(workdir)
    assert cli.main(["cache.errors"]) == 2


def test_config_defaults_without_pyproject(tmp_path: Path) -> None:
    config = load_config(tmp_path / "nowhere")
    # tmp_path has no pyproject.toml, but a parent directory might
    assert isinstance(config.strict_placeholders, bool)


def test_compile_file_writes_default_path(workdir: Path) -> None:
    result = compile_file(workdir / "cache.errors")

    assert result.ok
    assert default_output_path(workdir / "cache.errors") == workdir / "cache_errors.py"
    assert (workdir / "cache_errors.py").read_text(encoding="utf-8") == result.code


def test_compile_file_without_write_leaves_disk_untouched(workdir: Path) -> None:
    result = compile_file(workdir / "cache.errors", write=False)

    assert result.ok
    assert result.code.startswith("# Generated by errorgen")
    assert not (workdir / "cache_errors.py").exists()


def test_unwritable_output(workdir: Path, capsys) -> None:
    assert cli.main(["cache.errors", "-o", "cache.errors/out.py"]) == 2
    assert "cannot write" in capsys.readouterr().err
