"""
Existence Check Transports
==========================

Backends that answer "is the resource at this locator servable?".

This module provides the ExistenceCheck protocol and two implementations:
    - HttpExistenceCheck: HEAD request against the remote namespace
    - StaticExistenceCheck: deterministic in-memory answers for tests and demos

Design Rules:
    - A check returns True only for a confirmed, usable resource
    - Transports never read or decode the resource payload
    - Errors may be raised; the prober turns any error into "missing"
"""

import logging
from typing import Collection, List, Optional, Protocol

import httpx


logger = logging.getLogger(__name__)


class ExistenceCheck(Protocol):
    """
    Protocol for existence-check backends.

    All implementations must provide an async ``exists`` method taking an
    opaque locator and returning whether the resource can be displayed.
    """

    async def exists(self, locator: str) -> bool:
        """
        Check whether the resource at ``locator`` exists.

        Args:
            locator: Frame locator from the addressing module

        Returns:
            True if the resource is usable
        """
        ...


class HttpExistenceCheck:
    """
    Existence check issuing lightweight HTTP HEAD requests.

    The checked URL is ``locator + probe_suffix``; for zarr pyramids the
    consolidated metadata document is enough to confirm the dataset is
    published. Only 2xx responses count as present.

    Attributes:
        timeout: Per-request timeout in seconds
        probe_suffix: Suffix appended to each locator

    Example:
        async with HttpExistenceCheck(timeout=10.0) as check:
            ok = await check.exists(frame.locator)
    """

    def __init__(
        self,
        timeout: float = 10.0,
        probe_suffix: str = "/.zmetadata",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize HTTP existence check.

        Args:
            timeout: Per-request timeout in seconds
            probe_suffix: Suffix appended to the locator
            client: Shared client; one is created lazily when omitted
        """
        self.timeout = timeout
        self.probe_suffix = probe_suffix
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def exists(self, locator: str) -> bool:
        url = locator + self.probe_suffix
        response = await self._get_client().head(url)
        if response.is_success:
            return True
        logger.debug(f"HEAD {url} -> HTTP {response.status_code}")
        return False

    async def aclose(self) -> None:
        """Close the underlying client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpExistenceCheck":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()


class StaticExistenceCheck:
    """
    Deterministic in-memory existence check.

    Answers from a fixed set of present locators, or treats every locator
    as present except those listed in ``missing``. Keeps a call log so
    tests can assert on what was checked.

    Attributes:
        calls: Locators checked, in call order
    """

    def __init__(
        self,
        present: Optional[Collection[str]] = None,
        missing: Optional[Collection[str]] = None,
    ) -> None:
        """
        Initialize static existence check.

        Args:
            present: Locators reported as present (others missing)
            missing: Locators reported as missing (others present).
                Ignored when ``present`` is given.
        """
        self._present = set(present) if present is not None else None
        self._missing = set(missing or ())
        self.calls: List[str] = []

    async def exists(self, locator: str) -> bool:
        self.calls.append(locator)
        if self._present is not None:
            return locator in self._present
        return locator not in self._missing
