"""Optional content similarity screening before an authorization is issued.

The external checker answers with a score in ``[0, 100]`` plus the closest
registered asset. The policy turns the score into a verdict; the caller never
inspects the raw payload.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from orion_mint.core.errors import SimilarityUnavailable
from orion_mint.core.settings import settings
from orion_mint.utils.ethereum import to_hex

logger = logging.getLogger(__name__)

CHECK_PATH = "/check"


class SimilarityVerdict(str, Enum):
    CLEAN = "clean"
    WARNING = "warning"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class SimilarityMatch:
    """Registered asset closest to the submitted content."""

    ip_id: str | None = None
    creator_address: str | None = None
    content_hash: str | None = None
    asset_type: str | None = None


@dataclass(frozen=True)
class SimilarityReport:
    score: float
    verdict: SimilarityVerdict
    top_match: SimilarityMatch | None = None
    summary: str | None = None
    is_plagiarism: bool | None = None


@dataclass(frozen=True)
class SimilarityPolicy:
    """Score thresholds: below ``warn`` is clean, at or above ``block`` is blocked."""

    warn_threshold: float = 40.0
    block_threshold: float = 70.0

    def __post_init__(self) -> None:
        if not 0 <= self.warn_threshold <= self.block_threshold:
            raise ValueError("Similarity thresholds must satisfy 0 <= warn <= block")

    def classify(self, score: float) -> SimilarityVerdict:
        if score >= self.block_threshold:
            return SimilarityVerdict.BLOCKED
        if score >= self.warn_threshold:
            return SimilarityVerdict.WARNING
        return SimilarityVerdict.CLEAN


def _parse_match(payload: Any) -> SimilarityMatch | None:
    if not isinstance(payload, dict):
        return None
    return SimilarityMatch(
        ip_id=payload.get("ipId"),
        creator_address=payload.get("creatorAddress"),
        content_hash=payload.get("contentHash"),
        asset_type=payload.get("assetType"),
    )


class SimilarityClient:
    """Synchronous httpx client for the similarity checker.

    Any transport failure, non-2xx answer, or malformed body raises
    ``SimilarityUnavailable`` so that issuance fails closed.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        policy: SimilarityPolicy | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.policy = policy or SimilarityPolicy()
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def check(
        self,
        content_hash: bytes,
        creator_address: str,
        ip_metadata_uri: str,
    ) -> SimilarityReport:
        payload = {
            "contentHash": to_hex(content_hash),
            "creatorAddress": creator_address,
            "ipMetadataURI": ip_metadata_uri,
        }
        try:
            response = self._client.post(CHECK_PATH, json=payload)
            response.raise_for_status()
            body = response.json()
            score = float(body["score"])
        except httpx.HTTPError as exc:
            logger.warning("Similarity check failed: %s", exc)
            raise SimilarityUnavailable("Similarity checker is unavailable") from exc
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Similarity checker returned a malformed response: %s", exc)
            raise SimilarityUnavailable("Similarity checker returned a malformed response") from exc

        analysis = body.get("llmAnalysis") if isinstance(body.get("llmAnalysis"), dict) else {}
        report = SimilarityReport(
            score=score,
            verdict=self.policy.classify(score),
            top_match=_parse_match(body.get("topMatch")),
            summary=analysis.get("summary"),
            is_plagiarism=analysis.get("is_plagiarism"),
        )
        logger.info(
            "Similarity score %.1f (%s) for content %s",
            report.score,
            report.verdict.value,
            payload["contentHash"],
        )
        return report

    def close(self) -> None:
        self._client.close()


_similarity_client: SimilarityClient | None = None


def get_similarity_client() -> SimilarityClient | None:
    """Return the shared similarity client, or None when screening is disabled."""
    global _similarity_client
    if not settings.similarity_service_url:
        return None
    if _similarity_client is None:
        _similarity_client = SimilarityClient(
            settings.similarity_service_url,
            timeout_seconds=settings.similarity_timeout_seconds,
            policy=SimilarityPolicy(
                warn_threshold=settings.similarity_warn_threshold,
                block_threshold=settings.similarity_block_threshold,
            ),
        )
    return _similarity_client


def close_similarity_client() -> None:
    """Close the shared similarity client, if one was opened."""
    global _similarity_client
    if _similarity_client is not None:
        _similarity_client.close()
        _similarity_client = None
