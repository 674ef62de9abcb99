"""Tests for choosing the catalog entry a deployed chart came from."""

import dataclasses

import pytest

from conftest import make_artifact, make_entry
from helm_scout.config.settings import ScoringPolicy
from helm_scout.core.matcher import IdentityMatcher
from helm_scout.models import Confidence
from helm_scout.models.catalog import CatalogRepository, Link
from helm_scout.models.chart import Maintainer


@pytest.fixture
def matcher():
    return IdentityMatcher(ScoringPolicy(preferred_repositories=("bitnami",)))


class TestScore:
    def test_empty_candidate_scores_zero(self, matcher, artifact):
        assert matcher.score(artifact, make_entry()) == 0

    def test_every_descriptive_signal(self, matcher, artifact, similar_entry):
        # home, description, source link, maintainer, version present
        assert matcher.score(artifact, similar_entry) == 5

    def test_publisher_signals_are_additive(self, matcher, artifact):
        entry = make_entry(
            repository=CatalogRepository(name="x", verified_publisher=True),
            official=True,
        )
        assert matcher.score(artifact, entry) == 2

    def test_source_link_must_be_tagged_source(self, matcher, artifact):
        entry = make_entry(links=[Link(name="homepage", url="https://github.com/example/nginx")])
        assert matcher.score(artifact, entry) == 0

    def test_preferred_repository_outranks_single_signal(self, matcher, artifact):
        preferred = make_entry(repo="bitnami")
        described = make_entry(description="NGINX web server")
        assert matcher.score(artifact, preferred) > matcher.score(artifact, described)

    @pytest.mark.parametrize("change", [
        {"home_url": "https://nginx.org"},
        {"description": "NGINX web server"},
        {"links": [Link(name="source", url="https://github.com/example/nginx")]},
        {"maintainers": [Maintainer(name="alice")]},
        {"official": True},
    ])
    def test_monotonic(self, matcher, artifact, change):
        base = make_entry()
        improved = dataclasses.replace(base, **change)
        assert matcher.score(artifact, improved) > matcher.score(artifact, base)


class TestMatch:
    def test_no_candidates(self, matcher, artifact):
        result = matcher.match(artifact, [])
        assert not result.matched
        assert result.entry is None

    def test_no_candidate_with_same_name(self, matcher, artifact):
        result = matcher.match(artifact, [make_entry(name="redis")])
        assert not result.matched

    def test_highest_score_wins(self, matcher, artifact, similar_entry):
        weak = make_entry(repo="weak")
        result = matcher.match(artifact, [weak, similar_entry])
        assert result.entry is similar_entry
        assert result.confidence is Confidence.HIGH
        assert [o.key for o in result.others] == ["weak/nginx"]

    def test_tie_keeps_first(self, matcher, artifact):
        first, second = make_entry(repo="a"), make_entry(repo="b")
        result = matcher.match(artifact, [first, second])
        assert result.entry is first

    def test_zero_score_still_wins_with_low_confidence(self, matcher, artifact):
        only = make_entry()
        result = matcher.match(artifact, [only])
        assert result.entry is only
        assert result.score == 0
        assert result.confidence is Confidence.LOW

    def test_medium_confidence(self, matcher, artifact):
        result = matcher.match(artifact, [make_entry(description="NGINX web server")])
        assert result.confidence is Confidence.MEDIUM

    def test_popularity_breaks_ties(self, matcher, artifact):
        a = make_entry(repo="a", popularity=60)
        b = make_entry(repo="b", popularity=500)
        result = matcher.match(artifact, [a, b])
        assert result.entry is b
        assert result.score == 1

    def test_popularity_below_threshold_ignored(self, matcher, artifact):
        a = make_entry(repo="a", popularity=10)
        b = make_entry(repo="b", popularity=40)
        result = matcher.match(artifact, [a, b])
        assert result.entry is a
        assert result.score == 0

    def test_popularity_does_not_beat_strong_match(self, matcher, artifact, similar_entry):
        popular = make_entry(repo="popular", popularity=10_000)
        result = matcher.match(artifact, [popular, similar_entry])
        assert result.entry is similar_entry

    def test_policy_is_swappable(self, artifact):
        strict = IdentityMatcher(ScoringPolicy(home_url=10.0))
        a = make_entry(repo="a", description="NGINX web server")
        b = make_entry(repo="b", home_url="https://nginx.org")
        assert strict.match(artifact, [a, b]).entry is b

    def test_match_ignores_other_names(self, matcher):
        artifact = make_artifact(name="redis")
        redis = make_entry(name="redis")
        result = matcher.match(artifact, [make_entry(name="nginx", repo="bitnami"), redis])
        assert result.entry is redis
