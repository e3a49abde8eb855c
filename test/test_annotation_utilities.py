import pytest

from tailing_sidecar.common.error_types import InvalidAnnotationError
from tailing_sidecar.entities.sidecar_config import SidecarConfig
from tailing_sidecar.utilities.annotation_utilities import iter_annotation_entries, parse_annotation_entry


def test_entries_are_stripped_and_blank_ones_dropped():
    assert list(iter_annotation_entries(" varlog:/var/log/a.log ;; named:varlog:/var/log/b.log; ")) == [
        "varlog:/var/log/a.log",
        "named:varlog:/var/log/b.log",
    ]
    assert not list(iter_annotation_entries(""))
    assert not list(iter_annotation_entries(None))


def test_unnamed_entry_is_named_after_its_position():
    assert parse_annotation_entry("varlog:/var/log/a.log", 2) == (
        "annotation-config2",
        SidecarConfig(file="/var/log/a.log", volume="varlog"),
    )


def test_named_entry():
    assert parse_annotation_entry("app-log:varlog:/var/log/a.log", 0) == (
        "app-log",
        SidecarConfig(file="/var/log/a.log", volume="varlog"),
    )


def test_whitespace_around_fields_is_ignored():
    assert parse_annotation_entry(" named : app-data : /var/log/a.log", 0) == (
        "named",
        SidecarConfig(file="/var/log/a.log", volume="app-data"),
    )
    assert parse_annotation_entry("app-data: /var/log/a.log", 0)[1].file == "/var/log/a.log"


def test_file_may_contain_separator():
    _name, config = parse_annotation_entry("varlog:/var/log/a:b.log", 0)
    assert config.file == "/var/log/a:b.log"


@pytest.mark.parametrize(
    "entry",
    [
        "varlog",  # no file
        "varlog:var/log/a.log",  # relative file
        "a:b:varlog:/var/log/a.log",  # too many fields
        ":/var/log/a.log",  # empty volume
        "/var/log/a.log",  # no volume
    ],
)
def test_invalid_entries(entry: str):
    with pytest.raises(InvalidAnnotationError):
        parse_annotation_entry(entry, 0)
