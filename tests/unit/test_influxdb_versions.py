"""Unit tests for InfluxDB version family detection."""

import pytest

from dbdock.providers import InfluxDBProvider, is_influxdb_v2_or_higher


@pytest.mark.parametrize(
    "version",
    ["2", "2.7", "2.7.12-alpine", "3-core", "3.5.0-enterprise", "core", "enterprise", "latest", "alpine"],
)
def test_v2_or_higher(version):
    assert is_influxdb_v2_or_higher(version)


@pytest.mark.parametrize("version", ["1.12", "1.12.2-alpine", "1.11-data", "1.11.9-meta-alpine"])
def test_v1(version):
    assert not is_influxdb_v2_or_higher(version)


def test_missing_version_uses_current_family():
    assert is_influxdb_v2_or_higher(None)
    assert is_influxdb_v2_or_higher("")


def test_every_listed_tag_is_classified():
    """Tags starting with 1. are the only 1.x tags offered."""
    for version in InfluxDBProvider.versions:
        assert is_influxdb_v2_or_higher(version) is not version.startswith("1.")
