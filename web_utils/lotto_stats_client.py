from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Iterable, Optional, TypeVar
from urllib.parse import urlsplit

import requests
from pydantic import BaseModel, ValidationError

import constants as cte
from lotto_analysis.frequencies import group_by_position
from lotto_analysis.games import GameKind
from lotto_analysis.types import (
    CombinationQueryResult,
    FrequencyCategory,
    GeneratedCombination,
    GenerationMode,
    NumberFrequency,
    PositionFrequencyGroup,
    ResultsPage,
)
from web_utils.errors import InvalidEndpoint, MalformedResponse, ServerError, TransportFailure
from webapi.schemas import (
    CombinationCheckWire,
    Envelope,
    ErrorEnvelope,
    FrequencyWire,
    GenerationEnvelope,
    LatestPageWire,
    PositionFrequencyWire,
    describe_validation_error,
)

log = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class ClientConfig:
    base_url: str = cte.DEFAULT_BASE_URL
    timeout: float = cte.DEFAULT_TIMEOUT
    page_size: int = cte.PAGE_SIZE

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "ClientConfig":
        """
        Read the settings from the LOTTOSTATS_* environment variables.
        Unset variables fall back to the defaults in constants.py.
        """
        env = os.environ if environ is None else environ
        try:
            timeout = float(env.get(cte.ENV_TIMEOUT, cte.DEFAULT_TIMEOUT))
            page_size = int(env.get(cte.ENV_PAGE_SIZE, cte.PAGE_SIZE))
        except ValueError as e:
            raise ValueError(f"Invalid LOTTOSTATS_* setting: {e}") from e
        return cls(
            base_url=env.get(cte.ENV_BASE_URL, cte.DEFAULT_BASE_URL),
            timeout=timeout,
            page_size=page_size,
        )


class LottoStatsClient:
    """
    HTTP client for the lottery statistics API.

    Each operation issues exactly one request, with no retries and no cache.
    Every failure is translated into the LottoStatsError family.
    """

    def __init__(self, config: Optional[ClientConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or ClientConfig()
        self.session = session or requests.Session()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------------
    # Generic call
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        base = self.config.base_url.rstrip("/")
        url = base + path
        parts = urlsplit(base)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidEndpoint(url, "base URL needs an http(s) scheme and a host")
        if not path.startswith("/"):
            raise InvalidEndpoint(url, "path must start with '/'")
        return url

    def call(
        self,
        path: str,
        method: str = "GET",
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
        schema: Optional[type[ModelT]] = None,
    ) -> ModelT | Any:
        """
        Perform one request and decode the response.

        Args:
            path: absolute path under the base URL, e.g. /powerball/number-frequencies
            method: HTTP verb
            body: serialised as JSON when not None
            params: query string
            schema: pydantic model used to validate the JSON; without it the JSON is returned as is

        Returns:
            The validated model, or the decoded JSON when no schema is given.
        """
        url = self._url(path)
        log.debug("%s %s params=%s body=%s", method, url, params, body)

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=body,
                timeout=self.config.timeout,
            )
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                requests.exceptions.InvalidSchema) as e:
            raise InvalidEndpoint(url, str(e)) from e
        except requests.exceptions.Timeout as e:
            raise TransportFailure(f"timed out after {self.config.timeout}s calling {url}") from e
        except requests.exceptions.RequestException as e:
            raise TransportFailure(str(e)) from e

        if not 200 <= response.status_code < 300:
            raise self._server_error(response)

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"{path}: body is not valid JSON") from e

        if schema is None:
            return payload

        try:
            return schema.model_validate(payload)
        except ValidationError as e:
            detail = describe_validation_error(e)
            log.warning("Malformed response from %s: %s", url, detail)
            raise MalformedResponse(detail) from e

    @staticmethod
    def _server_error(response: requests.Response) -> ServerError:
        code = response.status_code
        try:
            message = ErrorEnvelope.model_validate(response.json()).message
        except (ValueError, ValidationError):
            message = f"status {code}"
        log.warning("Server error %s: %s", code, message)
        return ServerError(message, status_code=code)

    def _call_data(self, path: str, schema: type[Envelope], **kwargs) -> Any:
        envelope = self.call(path, schema=schema, **kwargs)
        if not envelope.success:
            raise ServerError(envelope.message or "request was not successful")
        if envelope.data is None:
            raise MalformedResponse("data: Field required")
        return envelope.data

    # ------------------------------------------------------------------
    # Typed operations
    # ------------------------------------------------------------------

    def fetch_frequencies(self, game: GameKind, category: FrequencyCategory | str) -> tuple[NumberFrequency, ...]:
        category = FrequencyCategory(category)
        data = self._call_data(
            f"/{game.endpoint_slug}/number-frequencies",
            Envelope[list[FrequencyWire]],
            params={"category": category.value},
        )
        return tuple(f.to_domain() for f in data)

    def fetch_position_frequencies(self, game: GameKind, position: Optional[int] = None) -> tuple[PositionFrequencyGroup, ...]:
        params = {"position": position} if position is not None else None
        data = self._call_data(
            f"/{game.endpoint_slug}/position-frequencies",
            Envelope[list[PositionFrequencyWire]],
            params=params,
        )
        return group_by_position((f.position, f.to_domain()) for f in data)

    def fetch_latest_results(self, game: GameKind, page: int = 1, page_size: Optional[int] = None) -> ResultsPage:
        page_size = page_size or self.config.page_size
        data = self._call_data(
            f"/{game.endpoint_slug}/latest-combinations",
            Envelope[LatestPageWire],
            params={"page": page, "page_size": page_size},
        )
        return ResultsPage(
            results=tuple(d.to_domain() for d in data.combinations),
            page=page,
            has_more=data.has_more,
        )

    def check_combination(self, game: GameKind, numbers: Iterable[int], special_ball: Optional[int] = None) -> CombinationQueryResult:
        body: dict[str, Any] = {"numbers": list(numbers)}
        if special_ball is not None:
            body["special_ball"] = special_ball
        data = self._call_data(
            f"/{game.endpoint_slug}/check-combination",
            Envelope[CombinationCheckWire],
            method="POST",
            body=body,
        )
        return data.to_domain()

    def generate_combination(self, game: GameKind, mode: GenerationMode | str) -> GeneratedCombination:
        mode = GenerationMode(mode)
        data = self._call_data(f"/{game.endpoint_slug}/{mode.endpoint}", GenerationEnvelope)
        return data.to_domain()
