"""
Live enrollment lookups.

The catalog exposes a small form-encoded endpoint that answers with
{"success": true, "data": "current/total"} for one class section.
"""

from __future__ import annotations

from typing import Any, Optional

import requests

from coursecatalog.config import DEFAULT_CONFIG, CatalogConfig
from coursecatalog.model import EnrollmentPayload


def parse_enrollment_response(
    body: Any,
    term: str,
    class_number: str,
    section: str,
) -> Optional[EnrollmentPayload]:
    """
    Turn the endpoint response into an EnrollmentPayload.

    Returns None if the request was not successful or the seat string
    cannot be read.
    """
    if not isinstance(body, dict) or not body.get("success"):
        return None

    seats = str(body.get("data", "")).split("/")
    if len(seats) != 2:
        return None

    try:
        available = int(seats[0].strip())
        total = int(seats[1].strip())
    except ValueError:
        return None

    if total <= 0:
        return None

    return EnrollmentPayload(
        term=term,
        class_number=class_number,
        section=section,
        available=available,
        total=total,
        overfill=available >= total,
        percent=round(available / total, 2),
    )


def get_raw_enrollment(
    term: str,
    class_number: str,
    section: str,
    config: CatalogConfig = DEFAULT_CONFIG,
    session: Optional[requests.Session] = None,
) -> Optional[EnrollmentPayload]:
    form = {
        "action": "get_latest_enrollment",
        "term": term,
        "classNbr": class_number,
        "sessionCode": 1,
        "classSection": section,
    }

    poster = session.post if session is not None else requests.post
    try:
        resp = poster(
            config.enrollment_url,
            data=form,
            headers={"User-Agent": config.user_agent},
            timeout=config.timeout,
        )
        resp.raise_for_status()
        body = resp.json()
    except (requests.RequestException, ValueError):
        return None

    return parse_enrollment_response(body, term, class_number, section)
