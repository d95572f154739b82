import pytest

from csvreports.errors import ReportIOError
from csvreports.paths import final_path, part_path, resolve_output_dir, validate_base_name


def test_relative_dir_resolves_under_root(tmp_path):
    assert resolve_output_dir(tmp_path, "monthly") == (tmp_path / "monthly").resolve()


def test_missing_dir_is_root(tmp_path):
    assert resolve_output_dir(tmp_path, None) == tmp_path.resolve()


def test_escape_from_root_is_rejected(tmp_path):
    with pytest.raises(ReportIOError):
        resolve_output_dir(tmp_path / "reports", "../elsewhere")


def test_absolute_dir_outside_root_is_rejected(tmp_path):
    with pytest.raises(ReportIOError):
        resolve_output_dir(tmp_path / "reports", "/etc")


@pytest.mark.parametrize("name", ["", "  ", "a/b", "..", "report.csv"])
def test_invalid_base_names(name):
    with pytest.raises(ReportIOError):
        validate_base_name(name)


def test_file_naming(tmp_path):
    assert final_path(tmp_path, "report").name == "report.csv"
    assert part_path(tmp_path, "report", 2).name == "report.part2.csv"
