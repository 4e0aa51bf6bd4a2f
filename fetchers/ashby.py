"""Adapter for Ashby hosted job boards."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from errors import DecodingError, InvalidURLError
from fetchers.base import BaseFetcher, FetchContext, dig
from filters import matches_any
from models import Job, JobSource
from tracking import tracking_file_name

logger = logging.getLogger(__name__)

API_URL = "https://jobs.ashbyhq.com/api/non-user-graphql?op=ApiJobBoardWithTeams"
JOB_URL = "https://jobs.ashbyhq.com/{slug}/{job_id}"
OPERATION = "ApiJobBoardWithTeams"
QUERY = """
query ApiJobBoardWithTeams($organizationHostedJobsPageName: String!) {
  jobBoard: jobBoardWithTeams(
    organizationHostedJobsPageName: $organizationHostedJobsPageName
  ) {
    teams {
      id
      name
      parentTeamId
    }
    jobPostings {
      id
      title
      teamId
      locationId
      locationName
      workplaceType
      employmentType
      secondaryLocations {
        locationId
        locationName
      }
      compensationTierSummary
    }
  }
}
"""


def board_slug(board_url: Optional[str]) -> str:
    parsed = urlparse((board_url or "").strip())
    segments = [part for part in parsed.path.split("/") if part]
    if not parsed.hostname or not segments:
        raise InvalidURLError(board_url)
    return segments[-1]


class AshbyFetcher(BaseFetcher):
    source = JobSource.ASHBY

    def tracking_name(self, board_url: Optional[str] = None) -> str:
        return tracking_file_name(self.source, board_slug(board_url))

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        slug = board_slug(ctx.board_url)
        board = self._board(slug)
        teams = {team.get("id"): team.get("name") for team in board.get("teams") or []}
        location_keywords = ctx.location_keywords()

        jobs: List[Job] = []
        for raw in board.get("jobPostings") or []:
            title = (raw.get("title") or "").strip()
            if not title or not raw.get("id"):
                continue
            location = raw.get("locationName") or "Location not specified"
            if not matches_any(title, ctx.title_keywords) or not matches_any(location, location_keywords):
                continue
            secondary = [loc.get("locationName") for loc in raw.get("secondaryLocations") or [] if loc.get("locationName")]
            if secondary:
                location = f"{location} (+ {', '.join(secondary)})"
            job_id = f"{self.source.id_prefix}-{raw['id']}"
            jobs.append(
                Job(
                    id=job_id,
                    title=title,
                    location=location,
                    url=JOB_URL.format(slug=slug, job_id=raw["id"]),
                    source=self.source,
                    first_seen_date=ctx.first_seen_for(job_id),
                    description=raw.get("compensationTierSummary") or "",
                    work_site_flexibility=raw.get("workplaceType"),
                    company_name=slug.capitalize(),
                    department=teams.get(raw.get("teamId")),
                    category=raw.get("employmentType"),
                )
            )
        return jobs

    def _board(self, slug: str) -> Dict[str, Any]:
        body = {
            "operationName": OPERATION,
            "query": QUERY,
            "variables": {"organizationHostedJobsPageName": slug},
        }
        payload = self._request_json("POST", API_URL, json=body, headers={"Content-Type": "application/json"})
        board = dig(payload, "data", "jobBoard")
        if not isinstance(board, dict):
            raise DecodingError(f"no job board named {slug!r} (data -> jobBoard is empty)")
        logger.info("Ashby board %s listed %d postings", slug, len(board.get("jobPostings") or []))
        return board
