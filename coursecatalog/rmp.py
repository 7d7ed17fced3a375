"""
Instructor identity resolution against the RateMyProfessors index.

Resolution order (first tier that finds something wins):

1. exact, case-insensitive match in the local index (rmp_ids.json)
2. fuzzy match in the local index, best Dice score above MATCH_THRESHOLD
3. remote autocomplete query, filtered by institution and a name gate
   (all query tokens present, or a Dice score above MATCH_THRESHOLD on
   the lowercased names)

A failing remote call never raises: the instructor simply resolves to an
empty id list.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from coursecatalog.config import DEFAULT_CONFIG, CatalogConfig
from coursecatalog.model import RatingReport, RmpIndexEntry, RmpRating, RmpResponse
from coursecatalog.similarity import (
    DiceSimilarity,
    SimilarityStrategy,
    best_match,
    is_match,
)


SEARCH_QUERY = """
query AutocompleteSearchQuery($query: String!) {
    autocomplete(query: $query) {
        teachers {
            edges {
                node {
                    id
                    firstName
                    lastName
                    school {
                        name
                        id
                    }
                }
            }
        }
    }
}
"""

REPORT_QUERY = """
query Node($id: ID!) {
    node(id: $id) {
        ... on Teacher {
            avgRating
            avgDifficultyRounded
            wouldTakeAgainPercent
            numRatings
            teacherRatingTags {
                tagName
            }
            firstName
            lastName
            ratings(first: 1000) {
                edges {
                    node {
                        id
                        class
                        comment
                        date
                        difficultyRating
                        helpfulRating
                        clarityRating
                        thumbsUpTotal
                        thumbsDownTotal
                        wouldTakeAgain
                        attendanceMandatory
                        grade
                        isForCredit
                        isForOnlineClass
                        ratingTags
                    }
                }
            }
        }
    }
}
"""


# ---------------------------------------------------------------------------
# Remote client
# ---------------------------------------------------------------------------


def _edges(container: Any) -> List[Dict[str, Any]]:
    if not isinstance(container, dict):
        return []
    edges = container.get("edges") or []
    return [e["node"] for e in edges if isinstance(e, dict) and isinstance(e.get("node"), dict)]


def _float(value: Any) -> Optional[float]:
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    # RMP reports -1 for "no data"
    return None if out < 0 else out


class RmpClient:
    """
    Thin wrapper around the RateMyProfessors GraphQL endpoint.
    """

    def __init__(self, config: CatalogConfig = DEFAULT_CONFIG, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()

    def _query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        resp = self.session.post(
            self.config.rmp_url,
            json={"query": query, "variables": variables},
            headers={
                "Authorization": self.config.rmp_authorization,
                "User-Agent": self.config.user_agent,
            },
            timeout=self.config.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict) or not isinstance(data.get("data"), dict):
            raise ValueError("Unexpected GraphQL response")
        return data["data"]

    def search(self, name: str) -> Optional[List[Dict[str, Any]]]:
        """
        Return the raw teacher nodes for a name, or None if the call failed.
        """
        try:
            data = self._query(SEARCH_QUERY, {"query": name})
        except (requests.RequestException, ValueError):
            return None

        autocomplete = data.get("autocomplete") or {}
        return _edges(autocomplete.get("teachers"))

    def report(self, rmp_id: str) -> Optional[RatingReport]:
        """
        Build a RatingReport for one RMP id, or None if it cannot be loaded.
        """
        try:
            data = self._query(REPORT_QUERY, {"id": rmp_id})
        except (requests.RequestException, ValueError):
            return None

        node = data.get("node")
        if not isinstance(node, dict):
            return None

        reviews: List[RmpRating] = []
        for r in _edges(node.get("ratings")):
            reviews.append(
                RmpRating(
                    id=str(r.get("id", "")),
                    course=str(r.get("class") or ""),
                    comment=str(r.get("comment") or ""),
                    date=str(r.get("date") or ""),
                    difficulty=_float(r.get("difficultyRating")),
                    helpful=_float(r.get("helpfulRating")),
                    clarity=_float(r.get("clarityRating")),
                    thumbs_up=int(r.get("thumbsUpTotal") or 0),
                    thumbs_down=int(r.get("thumbsDownTotal") or 0),
                    would_take_again=r.get("wouldTakeAgain"),
                    attendance_mandatory=r.get("attendanceMandatory"),
                    grade=r.get("grade"),
                    for_credit=r.get("isForCredit"),
                    online=r.get("isForOnlineClass"),
                    tags=[t for t in str(r.get("ratingTags") or "").split("--") if t],
                )
            )

        tags = [
            str(t.get("tagName"))
            for t in node.get("teacherRatingTags") or []
            if isinstance(t, dict) and t.get("tagName")
        ]

        name = f"{node.get('firstName') or ''} {node.get('lastName') or ''}".strip()
        return RatingReport(
            name=name,
            average=_float(node.get("avgRating")),
            ratings=int(node.get("numRatings") or 0),
            take_again=_float(node.get("wouldTakeAgainPercent")),
            difficulty=_float(node.get("avgDifficultyRounded")),
            tags=tags,
            reviews=reviews,
        )


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class InstructorResolver:
    """
    Resolves an instructor display name ("First Last") to RMP ids.
    """

    def __init__(
        self,
        index: Optional[List[RmpIndexEntry]] = None,
        client: Optional[RmpClient] = None,
        config: CatalogConfig = DEFAULT_CONFIG,
        strategy: Optional[SimilarityStrategy] = None,
    ) -> None:
        self.index = list(index or [])
        self.config = config
        self.client = client or RmpClient(config)
        self.strategy = strategy or DiceSimilarity()

        self._exact: Dict[str, RmpIndexEntry] = {}
        for entry in self.index:
            self._exact.setdefault(entry.name.lower(), entry)

    def resolve(self, name: str) -> RmpResponse:
        local = self._exact.get(name.lower())
        if local:
            return RmpResponse(name=name, rmp_ids=list(local.rmp_ids))

        similar = best_match(name, self.index, key=lambda e: e.name, strategy=self.strategy)
        if similar:
            entry, _ = similar
            return RmpResponse(name=entry.name, rmp_ids=list(entry.rmp_ids))

        # blank names and comma lists are leftovers of malformed instructor cells
        if not name.strip() or "," in name:
            return RmpResponse(name=name, rmp_ids=[])

        return RmpResponse(name=name, rmp_ids=self._resolve_remote(name))

    def _resolve_remote(self, name: str) -> List[str]:
        candidates = self.client.search(name)
        if not candidates:
            return []

        institution = self.config.institution.lower()
        wanted = name.lower().split()

        ids: List[str] = []
        for node in candidates:
            school = node.get("school") or {}
            if institution not in str(school.get("name", "")).lower():
                continue

            candidate = f"{node.get('firstName') or ''} {node.get('lastName') or ''}".strip()
            tokens = candidate.lower().split()
            contained = all(t in tokens for t in wanted)
            if not contained and not is_match(self.strategy.score(" ".join(wanted), " ".join(tokens))):
                continue

            if node.get("id"):
                ids.append(str(node["id"]))

        return ids
