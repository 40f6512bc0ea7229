"""Hosting provider API client for listing an account's repositories"""

from typing import Any, Dict, List, Optional
import logging

import httpx

from .exceptions import RepositoryListingError
from .models import Location


logger = logging.getLogger(__name__)


class GitHubClient:
    """Minimal GitHub REST client"""

    def __init__(self,
                 api_url: str = "https://api.github.com",
                 token: Optional[str] = None,
                 timeout: float = 30.0,
                 per_page: int = 100,
                 transport: Optional[httpx.BaseTransport] = None):
        """
        Initialize the client

        Args:
            api_url: Base URL of the REST API
            token: Optional bearer token for authenticated requests
            timeout: Request timeout in seconds
            per_page: Page size for list endpoints (GitHub caps it at 100)
            transport: Custom httpx transport, mainly for tests
        """
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "repoheft",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.per_page = per_page
        self._client = httpx.Client(
            base_url=api_url.rstrip('/'),
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True
        )

    def __enter__(self) -> 'GitHubClient':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def list_repositories(self, location: Location) -> List[Dict[str, Any]]:
        """Return the raw repository objects of a user or organization"""
        if not location.is_account:
            raise ValueError(f"Not an account location: {location.raw}")

        url: Optional[str] = f"/{location.kind.value}/{location.owner}/repos"
        params: Optional[Dict[str, Any]] = {"per_page": self.per_page}
        repos: List[Dict[str, Any]] = []

        while url:
            try:
                response = self._client.get(url, params=params)
                response.raise_for_status()
                page = response.json()
            except httpx.HTTPStatusError as e:
                raise RepositoryListingError(
                    f"Listing repositories for {location.owner} failed with "
                    f"HTTP {e.response.status_code}: {e.response.text[:200]}"
                ) from e
            except httpx.HTTPError as e:
                raise RepositoryListingError(
                    f"Listing repositories for {location.owner} failed: {e}"
                ) from e
            except ValueError as e:
                raise RepositoryListingError(f"Invalid JSON from {response.url}: {e}") from e

            if not isinstance(page, list):
                raise RepositoryListingError(f"Unexpected response from {response.url}: expected a list")
            repos.extend(page)
            logger.debug(f"Fetched {len(page)} repositories from {response.url}")

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        return repos

    def list_clone_urls(self, location: Location) -> List[str]:
        """Return the clone URL of every repository in an account"""
        urls = []
        for repo in self.list_repositories(location):
            clone_url = repo.get("clone_url") if isinstance(repo, dict) else None
            if not clone_url:
                raise RepositoryListingError(f"Repository entry without clone_url: {repo!r}")
            urls.append(clone_url)
        logger.info(f"Found {len(urls)} repositories for {location.owner}")
        return urls
