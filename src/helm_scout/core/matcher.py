"""Decide which catalog entry a deployed chart actually came from.

Nothing ties a release in the cluster to a package in a catalog, and many
repositories republish charts under the same name.  Each same-named
candidate is scored on independent signals and the best one wins.
"""

from __future__ import annotations

import logging

from helm_scout.config.settings import ScoringPolicy
from helm_scout.models import Confidence
from helm_scout.models.artifact import ObservedArtifact
from helm_scout.models.catalog import CatalogEntry
from helm_scout.models.report import CandidateScore, MatchResult

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_SCORE = 3.0


class IdentityMatcher:
    def __init__(self, policy: ScoringPolicy | None = None) -> None:
        self.policy = policy or ScoringPolicy()

    def score(self, artifact: ObservedArtifact, entry: CatalogEntry) -> float:
        """Similarity of *entry* to *artifact*, excluding the popularity bonus."""
        p = self.policy
        repo = entry.repository.name
        total = 0.0
        if artifact.home_url == entry.home_url:
            logger.debug("+%s score for %s Home URL (repo %s)", p.home_url, artifact.name, repo)
            total += p.home_url
        if artifact.description == entry.description:
            logger.debug("+%s score for %s Description (repo %s)", p.description, artifact.name, repo)
            total += p.description
        if any(link.name == "source" and link.url in artifact.source_urls for link in entry.links):
            logger.debug("+%s score for %s source links (repo %s)", p.source_link, artifact.name, repo)
            total += p.source_link
        entry_maintainers = {m.name for m in entry.maintainers if m.name}
        if artifact.maintainer_names & entry_maintainers:
            logger.debug("+%s score for %s Maintainers (repo %s)", p.maintainer, artifact.name, repo)
            total += p.maintainer
        if entry.repository.verified_publisher:
            logger.debug("+%s score for %s verified publisher (repo %s)", p.verified_publisher, artifact.name, repo)
            total += p.verified_publisher
        if entry.is_official:
            logger.debug("+%s score for %s official (repo %s)", p.official, artifact.name, repo)
            total += p.official
        if entry.has_version(artifact.current_version):
            logger.debug("+%s score for %s, current version available (repo %s)", p.version_present, artifact.name, repo)
            total += p.version_present
        if repo in p.preferred_repositories:
            logger.debug("+%s score for %s, preferred repo (repo %s)", p.preferred_repository, artifact.name, repo)
            total += p.preferred_repository
        return total

    def match(self, artifact: ObservedArtifact, candidates: list[CatalogEntry]) -> MatchResult:
        named = [c for c in candidates if c.name == artifact.name]
        if not named:
            logger.debug("no catalog entry named %s", artifact.name)
            return MatchResult.no_match()

        scores = [self.score(artifact, c) for c in named]

        popular = self._most_popular(named)
        if popular is not None:
            scores[popular] += self.policy.popularity

        best = 0
        for i in range(1, len(named)):
            if scores[i] > scores[best]:
                best = i

        others = tuple(
            CandidateScore(key=c.key, score=s)
            for i, (c, s) in enumerate(zip(named, scores))
            if i != best
        )
        winner = named[best]
        logger.debug(
            "highScore for %r: %s, highScorePackage repo: %s",
            artifact.name, scores[best], winner.repository.name,
        )
        return MatchResult(
            entry=winner,
            score=scores[best],
            confidence=_confidence(scores[best]),
            others=others,
        )

    def _most_popular(self, candidates: list[CatalogEntry]) -> int | None:
        """Index of the single most popular candidate above the threshold."""
        best: int | None = None
        for i, c in enumerate(candidates):
            if c.popularity is None or c.popularity <= self.policy.popularity_threshold:
                continue
            if best is None or c.popularity > (candidates[best].popularity or 0):
                best = i
        return best


def _confidence(score: float) -> Confidence:
    if score >= HIGH_CONFIDENCE_SCORE:
        return Confidence.HIGH
    if score > 0:
        return Confidence.MEDIUM
    return Confidence.LOW
