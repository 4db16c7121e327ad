from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlsplit

import pytest

from lotto_analysis.games import MEGA_MILLIONS
from other_utils.session import LotteryController
from web_utils.lotto_stats_client import ClientConfig, LottoStatsClient

FIXTURES = Path(__file__).parent / "fixtures"
BASE_URL = "http://lotto.test"


def load_fixture(name: str) -> Any:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


class FakeResponse:
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        if isinstance(self._payload, str):
            # cuerpo de texto sin procesar
            return json.loads(self._payload)
        return self._payload


class FakeSession:
    """
    Sustituto de requests.Session: responde según (método, ruta).
    Una ruta puede ser (status, payload), una excepción a lanzar o un callable
    que recibe (params, body) y devuelve (status, payload).
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Any] = {}
        self.calls: list[dict[str, Any]] = []
        self.closed = False
        self._lock = threading.Lock()

    def route(self, method: str, path: str, response: Any) -> None:
        self.routes[(method, path)] = response

    def request(self, method, url, params=None, json=None, timeout=None):
        path = urlsplit(url).path
        with self._lock:
            self.calls.append({"method": method, "url": url, "path": path,
                               "params": params, "json": json, "timeout": timeout})
        try:
            route = self.routes[(method, path)]
        except KeyError:
            return FakeResponse(404, {"success": False, "message": f"no route {method} {path}"})

        if isinstance(route, BaseException):
            raise route
        if callable(route):
            route = route(params, json)
        status, payload = route
        return FakeResponse(status, payload)

    def calls_to(self, path: str) -> list[dict[str, Any]]:
        return [c for c in self.calls if c["path"] == path]

    def close(self):
        self.closed = True


def mega_millions_routes(session: FakeSession) -> FakeSession:
    """Servidor de Mega Millions con datos completos y dos páginas de resultados."""
    pages = {
        1: load_fixture("mega_millions_latest_page1.json"),
        2: load_fixture("mega_millions_latest_page2.json"),
    }
    frequencies = {
        "main": load_fixture("mega_millions_frequencies_main.json"),
        "special": load_fixture("mega_millions_frequencies_special.json"),
    }
    session.route("GET", "/mega-millions/number-frequencies",
                  lambda params, body: (200, frequencies[params["category"]]))
    session.route("GET", "/mega-millions/position-frequencies",
                  (200, load_fixture("mega_millions_position_frequencies.json")))
    session.route("GET", "/mega-millions/latest-combinations",
                  lambda params, body: (200, pages[params["page"]]))
    session.route("POST", "/mega-millions/check-combination",
                  (200, load_fixture("mega_millions_check_combination.json")))
    session.route("GET", "/mega-millions/generate-optimized",
                  (200, load_fixture("mega_millions_generate_optimized.json")))
    return session


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session) -> LottoStatsClient:
    return LottoStatsClient(ClientConfig(base_url=BASE_URL, timeout=5.0, page_size=3), session=session)


@pytest.fixture
def mega_session(session) -> FakeSession:
    return mega_millions_routes(session)


@pytest.fixture
def controller(mega_session, client) -> LotteryController:
    return LotteryController(MEGA_MILLIONS, client)
