"""schoolnet.client

`SchoolnetClient` wraps the Schoolnet REST API (districts, schools, sections,
staff, students, assessments). Every read goes through :meth:`api_get`, which
authenticates, retries transient network failures and follows pagination;
writes go through :meth:`api_put`.

Example Usage:
    from schoolnet import SchoolnetClient

    api = SchoolnetClient(clientId="...", clientSecret="...", baseUrl="https://district.schoolnet.com")
    for district in api.get_districts():
        schools = api.get_schools(district)
"""
from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urljoin

import requests

from .auth import Credentials, TokenCache
from .config import SchoolnetConfig
from .errors import AuthenticationError, SchoolnetError
from .ids import IdLike, assessment_id, institution_id, school_id, section_id, staff_id
from .log import logger, set_log_level
from .retry import RetryPolicy
from .utils import OMISSIONS, format_filter_date, merge_query, trim_data, unwrap

__all__ = ["SchoolnetClient", "DEFAULT_LIMIT", "DEFAULT_OFFSET", "ASSESSMENT_FILTER"]

DEFAULT_LIMIT = 500
DEFAULT_OFFSET = 0

ASSESSMENT_FILTER = (
    'teststage=="scheduled inprogress completed";'
    "itemtype==MultipleChoice,itemtype==TrueFalse"
)
SECTION_EXPAND = "assessmentassignment,course,schedule"
ASSESSMENT_EXPAND = "assessmentquestion,assessmentschedule"
IDENTIFIER_EXPAND = "identifier"

HEADERS = {
    "Accept": "application/json",
    "User-Agent": "schoolnet-python/0.1.0",
}


class SchoolnetClient:
    """Client for the Schoolnet REST API."""

    def __init__(
        self,
        config: Union[SchoolnetConfig, Mapping, None] = None,
        *,
        session: Optional[requests.Session] = None,
        retry: Optional[RetryPolicy] = None,
        **options: Any,
    ):
        if isinstance(config, SchoolnetConfig):
            self.config = SchoolnetConfig.from_mapping({**config.model_dump(), **options}) if options else config
        else:
            self.config = SchoolnetConfig.from_mapping({**dict(config or {}), **options})
        self.base_url = self.config.api_url
        self.token_url = self.config.token_url
        self.omissions = OMISSIONS
        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            session.headers.update(HEADERS)
        self.session = session
        self.retry = retry or RetryPolicy()
        self.credentials = Credentials.from_config(self.config)
        self.tokens = TokenCache(
            self.session,
            self.token_url,
            self.credentials,
            timeout=self.config.timeout,
            retry=self.retry,
        )

    def __enter__(self) -> "SchoolnetClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session:
            self.session.close()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def access_token(self) -> str:
        return self.tokens.get_token()

    def url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token()}"}

    def _get(self, url: str, params: Dict[str, Any], headers: Dict[str, str]) -> requests.Response:
        r = self.session.get(url, params=params, headers=headers, timeout=self.config.timeout)
        r.raise_for_status()
        return r

    def _trimmed(self, r: requests.Response) -> Any:
        if r.status_code == 204 or not r.content:
            return {}
        return trim_data(unwrap(r.json()), self.omissions)

    def _get_page(self, path: str, query: Dict[str, Any]) -> Any:
        headers = self._auth_headers()
        url = self.url(path)
        logger.debug("requesting: %s %s", url, query)
        r = self.retry.call(self._get, url, dict(query), headers)
        return self._trimmed(r)

    def api_get(
        self,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        recursive: Optional[bool] = None,
    ) -> Any:
        """GET *path*, following pages unless a single page was asked for.

        With neither *limit* nor *offset* every page is fetched, 500 records at
        a time, until a page comes back short. Passing either one returns that
        page only unless *recursive* is also true.
        """
        query = dict(query or {})
        if limit or (offset is not None and offset >= 0):
            logger.debug("limit or offset provided")
            recursive = bool(recursive)
        else:
            logger.debug("neither limit nor offset provided")
            recursive = True if recursive is None else recursive
        limit = limit or DEFAULT_LIMIT
        query["limit"] = limit
        query["offset"] = offset or DEFAULT_OFFSET
        logger.debug("apiGet: %s", {"path": path, "query": query, "recursive": recursive})

        results = self._get_page(path, query)
        page = results
        while recursive and isinstance(page, list) and len(page) >= limit:
            query["offset"] += limit
            logger.debug("requesting next page %s", {"limit": limit, "offset": query["offset"]})
            page = self._get_page(path, query)
            if not isinstance(page, list):
                break
            results.extend(page)
        return results

    def api_put(self, path: str, payload: Any, query: Optional[Dict[str, Any]] = None) -> Any:
        """PUT *payload* as JSON. Never retried, so a write is sent at most once."""
        headers = self._auth_headers()
        url = self.url(path)
        logger.debug("putting: %s", {"path": path, "query": query})
        r = self.session.put(url, json=payload, params=query, headers=headers, timeout=self.config.timeout)
        r.raise_for_status()
        return self._trimmed(r)

    # ------------------------------------------------------------------
    # resources
    # ------------------------------------------------------------------

    def get_districts(self) -> List[Dict[str, Any]]:
        return self.api_get("districts")

    def get_schools(self, district: IdLike, **opts: Any) -> List[Dict[str, Any]]:
        return self.api_get(f"districts/{institution_id(district)}/schools", **opts)

    def get_school(self, school: IdLike, **opts: Any) -> Dict[str, Any]:
        return self.api_get(f"schools/{school_id(school)}", **opts)

    def get_sections(self, school: IdLike, **opts: Any) -> List[Dict[str, Any]]:
        return self.api_get(f"schools/{school_id(school)}/sections", **opts)

    def get_section(self, section: IdLike) -> Dict[str, Any]:
        return self.api_get(f"sections/{section_id(section)}", query={"expand": SECTION_EXPAND})

    def get_students(self, section: IdLike, **opts: Any) -> List[Dict[str, Any]]:
        opts["query"] = merge_query(opts.get("query"), {"expand": IDENTIFIER_EXPAND})
        return self.api_get(f"sections/{section_id(section)}/students", **opts)

    def get_staff(self, staff: IdLike, **opts: Any) -> Dict[str, Any]:
        opts["query"] = merge_query(opts.get("query"), {"expand": IDENTIFIER_EXPAND})
        return self.api_get(f"staff/{staff_id(staff)}", **opts)

    def get_staff_sections(self, staff: IdLike) -> List[Dict[str, Any]]:
        return self.api_get(f"staff/{staff_id(staff)}/staffSectionAssignments")

    def get_assessments(
        self,
        modified_since: Union[str, int, float, date, None] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Scheduled, in-progress and completed multiple-choice/true-false assessments.

        Only records carrying an ``instanceId`` are returned.
        """
        query_filter = ASSESSMENT_FILTER
        if modified_since:
            query_filter = f"modifiedsince=={format_filter_date(modified_since)};{query_filter}"
        alist = self.api_get("assessments", query={"filter": query_filter}, limit=limit, offset=offset)
        if not isinstance(alist, list):
            return alist
        return [a for a in alist if a.get("instanceId")]

    def get_assessment(self, assessment: IdLike) -> Dict[str, Any]:
        return self.api_get(
            f"assessments/{assessment_id(assessment)}",
            query={"expand": ASSESSMENT_EXPAND},
        )

    def put_student_assessment(self, obj: Optional[Mapping]) -> Dict[str, Any]:
        """Submit one student's assessment results.

        Never raises for request failures: check ``result["success"]``.
        """
        if not isinstance(obj, Mapping) or not obj.get("assessmentId"):
            logger.error("put_student_assessment: Invalid assessment: %s", obj)
            return {"success": False}

        path = f"assessments/{obj['assessmentId']}/studentAssessments"
        try:
            self.api_put(path, dict(obj))
        except (requests.exceptions.RequestException, SchoolnetError) as e:
            logger.warning("put_student_assessment: %s", e)
            return {"success": False, **obj, **_error_fields(e)}
        return {"success": True, **obj}

    def get_tenants(self) -> List[Dict[str, Any]]:
        headers = self._auth_headers()
        r = self.retry.call(self._get, self.url("tenants"), {}, headers)
        return self._trimmed(r)

    def set_log_level(self, level: Union[str, int]) -> None:
        set_log_level(level)


def _error_fields(err: Exception) -> Dict[str, Any]:
    fields: Dict[str, Any] = {"error": str(err)}
    response = getattr(err, "response", None)
    if response is not None:
        fields["status_code"] = response.status_code
    if isinstance(err, AuthenticationError):
        fields["body"] = err.body
    return fields
