"""Tests for newest / newest-minor / newest-patch resolution."""

from helm_scout.core.newest_resolver import parse_tags, resolve
from helm_scout.utils.version_compare import parse_version


def _current(raw):
    return parse_version(raw)[0]


class TestResolve:
    def test_newest_minor_patch(self):
        summary = resolve(_current("1.0.0"), ["1.0.0", "1.0.1", "1.0.2", "1.1.0", "2.0.0"])
        assert summary.newest.value == "2.0.0"
        assert summary.newest_minor.value == "1.1.0"
        assert summary.newest_patch.value == "1.0.2"

    def test_prefixed_tags(self):
        tags = ["v1.0.0", "v1.0.1", "v1.0.2", "v1.1.0", "v2.0.0"]
        summary = resolve(_current("1.0.0"), tags, prefix="v")
        assert summary.newest.value == "2.0.0"
        assert summary.newest_minor.value == "1.1.0"
        assert summary.newest_patch.value == "1.0.2"

    def test_non_semver_bucket(self):
        values = ["test-1.0.0", "bad", "v1.0-debian-1", "v1.1.0", "v2.0.0"]
        tags, non_semver = parse_tags(values)
        assert sorted(non_semver) == ["bad", "test-1.0.0"]
        assert len(tags) == 3

        summary = resolve(_current("1.0.0"), values)
        assert sorted(summary.non_semver) == ["bad", "test-1.0.0"]

    def test_nothing_newer(self):
        summary = resolve(_current("2.0.0"), ["1.0.0", "2.0.0"])
        assert summary.newest is None
        assert summary.newest_minor is None
        assert summary.newest_patch is None

    def test_each_field_independently_optional(self):
        summary = resolve(_current("1.0.0"), ["2.0.0"])
        assert summary.newest.value == "2.0.0"
        assert summary.newest_minor is None
        assert summary.newest_patch is None

    def test_prerelease_channel_skipped(self):
        summary = resolve(_current("1.0.0"), ["1.1.0-rc.1", "1.0.1"])
        assert summary.newest.value == "1.0.1"

    def test_prerelease_channel_followed_when_current_on_it(self):
        summary = resolve(_current("1.0.0-rc.1"), ["1.0.0-rc.1", "1.0.0-rc.2"])
        # rc.2 carries a different label than rc.1, so it is skipped
        assert summary.newest is None

        summary = resolve(_current("1.0.0-alpine"), ["1.1.0-alpine", "1.2.0-alpine"])
        assert summary.newest.value == "1.2.0-alpine"

    def test_major_jump_bound(self):
        summary = resolve(_current("1.0.0"), ["11.0.0", "12.0.0", "2017.1.0"])
        assert summary.newest.value == "11.0.0"

    def test_zero_major_has_no_newest_minor(self):
        summary = resolve(_current("0.1.0"), ["0.1.1", "0.2.0"])
        assert summary.newest.value == "0.2.0"
        assert summary.newest_minor is None
        assert summary.newest_patch.value == "0.1.1"

    def test_opaque_current_degrades(self):
        summary = resolve(_current("latest"), ["1.0.0", "bad"])
        assert summary.current is None
        assert summary.newest is None
        assert summary.non_semver == ["bad"]

    def test_idempotent(self):
        current = _current("1.0.0")
        values = ["2.0.0", "1.0.2", "junk", "1.1.0", "1.0.1"]
        assert resolve(current, values) == resolve(current, values)
