import pytest

from runtime_config.services.version_codec import (
    is_valid_version,
    parse_version,
    to_version_code,
)


@pytest.mark.parametrize(
    ("version", "expected"),
    [
        ("3.2.1", 3_002_001),
        ("3.2", 3_002_000),
        ("3", 3_000_000),
        ("1.2.3.4", 1_002_003),
        ("2.x.1", 2_000_001),
        ("7beta.1", 7_001_000),
        ("", 0),
        (None, 0),
    ],
)
def test_to_version_code(version, expected):
    assert to_version_code(version) == expected


def test_parse_version_pads_missing_segments():
    assert parse_version("4") == (4, 0, 0)
    assert parse_version("abc") == (0, 0, 0)


def test_version_codes_preserve_order():
    versions = ["0.9.9", "1.0.0", "1.0.10", "1.2", "2.0.0", "10.0.0"]
    codes = [to_version_code(v) for v in versions]
    assert codes == sorted(codes)


@pytest.mark.parametrize("version", ["1", "1.2", "1.2.3", "999.999.999", "0.0.0"])
def test_is_valid_version_accepts(version):
    assert is_valid_version(version) is True


@pytest.mark.parametrize(
    "version", ["", None, "1.2.3.4", "v1.2", "1.x", "1.1000", "1..2", " 1.2"]
)
def test_is_valid_version_rejects(version):
    assert is_valid_version(version) is False
