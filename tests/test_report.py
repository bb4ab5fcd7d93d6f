from avifconverter.errors import ConfigurationError, DecodeError
from avifconverter.processor import ConversionFailure, ConversionSuccess, TaskResult
from avifconverter.report import emit, format_error_chain, format_size_line, report_failures, warn
from avifconverter.sources import FilePath, Stdio


def test_size_line_rounds_kilobytes_up():
    assert format_size_line("a.avif", 1000, 600, 0) == "a.avif: 1KB (600B color, 0B alpha, 400B HEIF)"
    assert format_size_line("a.avif", 1001, 600, 100) == "a.avif: 2KB (600B color, 100B alpha, 301B HEIF)"
    assert format_size_line("a.avif", 0, 0, 0) == "a.avif: 0KB (0B color, 0B alpha, 0B HEIF)"


def test_error_chain_walks_causes():
    inner = ValueError("could not convert string to float: 'x'")
    middle = ConfigurationError("Invalid value for quality: 'x'", cause=inner)
    outer = ConfigurationError("Unable to load options", cause=middle)

    assert list(format_error_chain(outer)) == [
        "error: Unable to load options",
        "  because: Invalid value for quality: 'x'",
        "  because: could not convert string to float: 'x'",
    ]


def test_error_chain_follows_raise_from():
    try:
        try:
            raise OSError("disk on fire")
        except OSError as e:
            raise RuntimeError("wrapper") from e
    except RuntimeError as e:
        lines = list(format_error_chain(e))

    assert lines == ["error: wrapper", "  because: disk on fire"]


def test_error_without_cause():
    assert list(format_error_chain(ConfigurationError("No PNG/JPEG files specified"))) == [
        "error: No PNG/JPEG files specified",
    ]


def _result(failures, successes):
    outcomes = [ConversionSuccess(Stdio(), 10, 5, 0) for _ in range(successes)]
    outcomes += [
        ConversionFailure(f"f{i}.png", DecodeError("Unable to decode image: nope"))
        for i in range(failures)
    ]
    return TaskResult(outcomes)


def test_report_failures_prints_each_failure(capsys):
    assert report_failures(_result(2, 3), quiet=False) == 1
    err = capsys.readouterr().err.splitlines()
    assert sorted(err) == [
        "error: f0.png: error: Unable to decode image: nope",
        "error: f1.png: error: Unable to decode image: nope",
    ]


def test_report_failures_quiet(capsys):
    assert report_failures(_result(1, 0), quiet=True) == 1
    assert capsys.readouterr().err == ""


def test_report_no_failures(capsys):
    result = _result(0, 4)
    assert len(result.successes) == 4
    assert report_failures(result, quiet=False) == 0
    assert capsys.readouterr().err == ""


def test_success_overhead():
    success = ConversionSuccess(FilePath("a.avif"), 1000, 700, 200)
    assert success.container_overhead_bytes == 100


def test_emit_and_warn(capsys):
    emit("hello")
    warn("careful")
    captured = capsys.readouterr()
    assert captured.out == "hello\n"
    assert captured.err == "warning: careful\n"
