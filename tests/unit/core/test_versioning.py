"""Unit tests for release version comparison."""

import pytest
from ghupdater.core.errors import ConfigError, RemoteFetchError
from ghupdater.core.versioning import is_newer, parse_version


class TestIsNewer:
    """Tests for is_newer."""

    @pytest.mark.parametrize(
        ("remote", "local", "expected"),
        [
            ("1.2.1", "1.2.0", True),
            ("v1.3.0", "1.2.9", True),
            ("1.10.0", "1.9.0", True),
            ("1.2.0", "1.2.0", False),
            ("v1.2.0", "1.2.0", False),
            ("1.1.9", "1.2.0", False),
            ("2.0.0rc1", "2.0.0", False),
        ],
    )
    def test_strictly_greater(self, remote: str, local: str, expected: bool) -> None:
        """Only a strictly greater release counts as newer."""
        assert is_newer(remote, local) is expected

    def test_invalid_remote(self) -> None:
        """An unparseable release tag is a fetch error."""
        with pytest.raises(RemoteFetchError):
            is_newer("nightly", "1.0.0")

    def test_invalid_local(self) -> None:
        """An unparseable installed version is a config error."""
        with pytest.raises(ConfigError):
            is_newer("1.0.0", "latest")

    def test_parse_version_strips_prefix(self) -> None:
        """A leading 'V' is accepted."""
        assert str(parse_version("V3.1")) == "3.1"
