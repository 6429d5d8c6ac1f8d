import asyncio
from typing import Any, Dict, List

import httpx
import pytest

from itinerary_planner.errors import ProviderFailure
from itinerary_planner.tools.kakao import KakaoPlaceSearch
from itinerary_planner.tools.naver import NaverPlaceSearch
from itinerary_planner.tools.providers import derive_quality_signals


class DummyResponse:
    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("GET", "https://example.invalid")
            raise httpx.HTTPStatusError("error", request=request, response=httpx.Response(self.status_code, request=request))
        return None

    def json(self):
        return self._payload


class DummyAsyncClient:
    def __init__(self, response_payload, *args, status_code: int = 200, **kwargs):
        self.response_payload = response_payload
        self.status_code = status_code
        self.requests: List[tuple] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get(self, url, params=None, headers=None):
        self.requests.append((url, params, headers))
        return DummyResponse(self.response_payload, self.status_code)


def _install_client(monkeypatch, payload, status_code: int = 200) -> List[DummyAsyncClient]:
    clients: List[DummyAsyncClient] = []

    def factory(*args, **kwargs):
        client = DummyAsyncClient(payload, status_code=status_code)
        clients.append(client)
        return client

    monkeypatch.setattr(httpx, "AsyncClient", factory)
    return clients


KAKAO_DOCUMENT: Dict[str, Any] = {
    "id": "8310231",
    "place_name": "성산일출봉",
    "category_name": "여행 > 관광,명소 > 산",
    "address_name": "제주특별자치도 서귀포시 성산읍 성산리 1",
    "road_address_name": "제주특별자치도 서귀포시 성산읍 일출로 284-12",
    "x": "126.942",
    "y": "33.458",
    "phone": "064-783-0959",
    "place_url": "http://place.map.kakao.com/8310231",
}


def test_kakao_search_sends_key_and_returns_documents(monkeypatch):
    async def run() -> None:
        clients = _install_client(monkeypatch, {"documents": [KAKAO_DOCUMENT]})

        results = await KakaoPlaceSearch("secret", size=40).search("제주 성산일출봉")

        assert results == [KAKAO_DOCUMENT]
        url, params, headers = clients[0].requests[0]
        assert url == KakaoPlaceSearch.SEARCH_ENDPOINT
        assert params == {"query": "제주 성산일출봉", "size": 15}
        assert headers == {"Authorization": "KakaoAK secret"}

    asyncio.run(run())


def test_kakao_without_key_is_a_provider_failure(monkeypatch):
    monkeypatch.delenv("KAKAO_REST_API_KEY", raising=False)

    async def run() -> None:
        with pytest.raises(ProviderFailure):
            await KakaoPlaceSearch().search("제주")

    asyncio.run(run())


def test_kakao_http_error_is_a_provider_failure(monkeypatch):
    async def run() -> None:
        _install_client(monkeypatch, {}, status_code=401)
        with pytest.raises(ProviderFailure):
            await KakaoPlaceSearch("bad-key").search("제주")

    asyncio.run(run())


def test_kakao_normalize_maps_fields_and_signals():
    place = KakaoPlaceSearch("k").normalize(KAKAO_DOCUMENT, rank=2)

    assert place.id == "8310231"
    assert place.name == "성산일출봉"
    assert (place.lat, place.lng) == (33.458, 126.942)
    assert place.tags == ["여행", "관광,명소", "산"]
    assert place.source == "kakao"
    rating, reviews, popularity = derive_quality_signals("8310231", 2)
    assert place.rating == rating
    assert 3.0 <= place.rating <= 5.0
    assert place.review_count == reviews
    assert place.match_score == popularity == 26.0


def test_kakao_normalize_drops_missing_coordinates():
    broken = {**KAKAO_DOCUMENT, "x": "", "y": None}

    assert KakaoPlaceSearch("k").normalize(broken, rank=0) is None


def test_naver_search_and_normalize(monkeypatch):
    item = {
        "title": "<b>해운대</b> 해수욕장",
        "link": "https://www.haeundae.go.kr",
        "category": "여행>해수욕장,해변",
        "description": "",
        "telephone": "",
        "address": "부산광역시 해운대구 우동",
        "roadAddress": "부산광역시 해운대구 해운대해변로 264",
        "mapx": "1291586123",
        "mapy": "351586500",
    }

    async def run() -> None:
        clients = _install_client(monkeypatch, {"items": [item]})
        provider = NaverPlaceSearch("id", "secret")

        raw = await provider.search("부산 해운대")
        place = provider.normalize(raw[0], rank=0)

        _, params, headers = clients[0].requests[0]
        assert headers == {"X-Naver-Client-Id": "id", "X-Naver-Client-Secret": "secret"}
        assert params["query"] == "부산 해운대"
        assert place.name == "해운대 해수욕장"
        assert place.category == "여행 > 해수욕장,해변"
        assert place.tags == ["여행", "해수욕장,해변"]
        assert place.lng == pytest.approx(129.1586123)
        assert place.lat == pytest.approx(35.15865)
        assert place.source == "naver"
        assert place.description is None

    asyncio.run(run())


def test_derived_signals_are_stable():
    assert derive_quality_signals("abc", 0) == derive_quality_signals("abc", 0)
    assert derive_quality_signals("abc", 20)[2] == 0.0
