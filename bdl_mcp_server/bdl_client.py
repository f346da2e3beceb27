"""BDL (Bank Danych Lokalnych) REST API client."""

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx


LANGUAGES = ("pl", "en")
SORT_ORDERS = ("Id", "-Id", "Name", "-Name")
METADATA_SECTIONS = (
    "aggregates", "attributes", "levels", "measures", "subjects",
    "units", "variables", "data", "years",
)

QueryValue = Union[str, int, float, bool, Sequence[Union[str, int]], None]


@dataclass
class BDLConfig:
    """BDL API connection settings."""
    base_url: str = "https://bdl.stat.gov.pl/api/v1"
    default_language: str = "pl"
    timeout: int = 30
    max_retries: int = 1
    retry_backoff: float = 1.0


class BDLAPIError(Exception):
    """BDL API error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BDLClient:
    """Async client for the BDL API."""

    def __init__(self, config: Optional[BDLConfig] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config or BDLConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = logging.getLogger("bdl_client")

        self.logger.info(f"BDLClient initialized for {self.base_url} with retry config: max_retries={self.config.max_retries}, backoff={self.config.retry_backoff}s")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
                headers={
                    "Accept": "application/json",
                    "Accept-Language": self.config.default_language,
                }
            )
        return self._client

    async def close(self):
        """Close the HTTP client connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def _build_params(params: Optional[Dict[str, QueryValue]]) -> Dict[str, str]:
        """Drop unset values, join lists with commas and request JSON output."""
        query: Dict[str, str] = {}
        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                value = ",".join(str(item) for item in value)
            elif isinstance(value, bool):
                value = "true" if value else "false"
            query[key] = str(value)
        query["format"] = "json"
        return query

    async def _make_request(self, endpoint: str, params: Optional[Dict[str, QueryValue]] = None,
                            max_retries: Optional[int] = None) -> Any:
        """GET an API endpoint with retry on network errors and 5xx responses."""
        if max_retries is None:
            max_retries = self.config.max_retries

        url = f"{self.base_url}{endpoint}"
        query = self._build_params(params)

        for attempt in range(max_retries + 1):
            start_time = time.time()

            if attempt == 0:
                self.logger.info(f"API Request: GET {endpoint} (max_retries={max_retries})")
                self.logger.debug(f"Request URL: {url} params={json.dumps(query, ensure_ascii=False)}")
            else:
                self.logger.info(f"API Request Retry {attempt}/{max_retries}: GET {endpoint}")

            client = await self._get_client()
            try:
                response = await client.get(url, params=query)
                duration = time.time() - start_time
                retry_info = f" (attempt {attempt + 1})" if attempt > 0 else ""
                self.logger.info(f"API Response: GET {endpoint} - Duration: {duration:.3f}s - Status: {response.status_code}{retry_info}")

                if response.status_code >= 500 and attempt < max_retries:
                    self.logger.warning(f"API Server Error (retry {attempt + 1}/{max_retries}): GET {endpoint} - Status: {response.status_code}")
                    await asyncio.sleep(self.config.retry_backoff + attempt * 0.5)
                    continue

                if not response.is_success:
                    error_msg = f"BDL API Error ({response.status_code}): {response.text}"
                    self.logger.error(f"API Error (no retry): {error_msg}")
                    raise BDLAPIError(error_msg, status_code=response.status_code)

                try:
                    return response.json()
                except ValueError as e:
                    raise BDLAPIError(f"BDL API returned invalid JSON for {endpoint}: {e}") from e

            except httpx.HTTPError as e:
                duration = time.time() - start_time
                error_msg = f"HTTP error: {str(e) or e.__class__.__name__}"

                should_retry = attempt < max_retries and isinstance(e, (httpx.TransportError, httpx.TimeoutException))

                if should_retry:
                    self.logger.warning(f"API HTTP Error (retry {attempt + 1}/{max_retries}): GET {endpoint} - Duration: {duration:.3f}s - Error: {error_msg}")
                    await asyncio.sleep(self.config.retry_backoff + attempt * 0.5)
                    continue
                self.logger.error(f"API HTTP Error (no retry): GET {endpoint} - Duration: {duration:.3f}s - Error: {error_msg}")
                raise BDLAPIError(error_msg) from e

    # Aggregates

    async def get_aggregates(self, sort: Optional[str] = None, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/aggregates", {"sort": sort, "lang": lang})

    async def get_aggregate(self, aggregate_id: int, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/aggregates/{aggregate_id}", {"lang": lang})

    # Attributes

    async def get_attributes(self, sort: Optional[str] = None, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/attributes", {"sort": sort, "lang": lang})

    async def get_attribute(self, attribute_id: int, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/attributes/{attribute_id}", {"lang": lang})

    # Levels

    async def get_levels(self, sort: Optional[str] = None, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/levels", {"sort": sort, "lang": lang})

    async def get_level(self, level_id: int, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/levels/{level_id}", {"lang": lang})

    # Measures

    async def get_measures(self, sort: Optional[str] = None, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/measures", {"sort": sort, "lang": lang})

    async def get_measure(self, measure_id: int, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/measures/{measure_id}", {"lang": lang})

    # Subjects

    async def get_subjects(self, parent_id: Optional[str] = None, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/subjects", {"parent-id": parent_id, "lang": lang})

    async def get_subject(self, subject_id: str, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/subjects/{subject_id}", {"lang": lang})

    async def search_subjects(self, name: str, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/subjects/search", {"name": name, "lang": lang})

    # Units

    async def get_units(
        self,
        level: Optional[int] = None,
        parent_id: Optional[str] = None,
        name: Optional[str] = None,
        sort: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get territorial units.

        Args:
            level: Territorial level filter
            parent_id: Parent unit ID (TERYT code)
            name: Name filter
            sort: One of ``SORT_ORDERS``
            page: Page number
            page_size: Results per page (max 100)
            lang: Response language

        Returns:
            Paged unit list
        """
        return await self._make_request("/units", {
            "level": level,
            "parent-id": parent_id,
            "name": name,
            "sort": sort,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    async def get_unit(self, unit_id: str, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/units/{unit_id}", {"lang": lang})

    async def search_units(
        self,
        name: str,
        level: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request("/units/search", {
            "name": name,
            "level": level,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    # Localities

    async def get_localities(
        self,
        parent_id: Optional[str] = None,
        name: Optional[str] = None,
        year: Optional[int] = None,
        sort: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request("/units/localities", {
            "parent-id": parent_id,
            "name": name,
            "year": year,
            "sort": sort,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    async def get_locality(self, locality_id: str, year: Optional[int] = None,
                           lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/units/localities/{locality_id}", {"year": year, "lang": lang})

    async def search_localities(
        self,
        name: str,
        year: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request("/units/localities/search", {
            "name": name,
            "year": year,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    # Variables

    async def get_variables(
        self,
        subject_id: Optional[str] = None,
        level: Optional[int] = None,
        year: Optional[int] = None,
        sort: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request("/variables", {
            "subject-id": subject_id,
            "level": level,
            "year": year,
            "sort": sort,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    async def get_variable(self, variable_id: int, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/variables/{variable_id}", {"lang": lang})

    async def search_variables(
        self,
        name: str,
        subject_id: Optional[str] = None,
        level: Optional[int] = None,
        year: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request("/variables/search", {
            "name": name,
            "subject-id": subject_id,
            "level": level,
            "year": year,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    # Data

    async def get_data_by_variable(
        self,
        variable_id: int,
        unit_level: Optional[int] = None,
        unit_parent_id: Optional[str] = None,
        year: Optional[Union[int, List[int]]] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get data for one variable across territorial units.

        Args:
            variable_id: Variable ID
            unit_level: Territorial level of the returned units
            unit_parent_id: Restrict results to children of this unit
            year: Year or list of years
            page: Page number
            page_size: Results per page (max 100)
            lang: Response language

        Returns:
            Paged data for the variable
        """
        return await self._make_request(f"/data/by-variable/{variable_id}", {
            "unit-level": unit_level,
            "unit-parent-id": unit_parent_id,
            "year": year,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    async def get_data_by_unit(
        self,
        unit_id: str,
        variable_id: Optional[Union[int, List[int]]] = None,
        year: Optional[Union[int, List[int]]] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request(f"/data/by-unit/{unit_id}", {
            "var-id": variable_id,
            "year": year,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    async def get_locality_data_by_variable(
        self,
        variable_id: int,
        unit_parent_id: Optional[str] = None,
        year: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request(f"/data/localities/by-variable/{variable_id}", {
            "unit-parent-id": unit_parent_id,
            "year": year,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    async def get_locality_data_by_unit(
        self,
        unit_id: str,
        variable_id: Optional[Union[int, List[int]]] = None,
        year: Optional[int] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        lang: Optional[str] = None
    ) -> Dict[str, Any]:
        return await self._make_request(f"/data/localities/by-unit/{unit_id}", {
            "var-id": variable_id,
            "year": year,
            "page": page,
            "page-size": page_size,
            "lang": lang,
        })

    # Years

    async def get_years(self, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request("/years", {"lang": lang})

    async def get_year(self, year_id: int, lang: Optional[str] = None) -> Dict[str, Any]:
        return await self._make_request(f"/years/{year_id}", {"lang": lang})

    # Metadata and version

    async def get_metadata(self, section: str, lang: Optional[str] = None) -> Dict[str, Any]:
        """Get the metadata document of one API section (see ``METADATA_SECTIONS``)."""
        if section not in METADATA_SECTIONS:
            raise ValueError(f"Unknown metadata section '{section}'. Available sections: {list(METADATA_SECTIONS)}")
        return await self._make_request(f"/{section}/metadata", {"lang": lang})

    async def get_version(self) -> Dict[str, Any]:
        return await self._make_request("/version")
