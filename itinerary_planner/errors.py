"""Planner error taxonomy.

Provider failures are recovered by the search aggregator. Search, discovery
and empty-pool failures propagate to callers and are safe to retry.
"""
from __future__ import annotations


class PlannerError(Exception):
    """Base class for planner errors surfaced to callers."""

    status_code = 500
    retryable = False
    default_message = "일정 생성 중 오류가 발생했습니다."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ProviderFailure(PlannerError):
    status_code = 502
    retryable = True
    default_message = "장소 검색 제공자 호출에 실패했습니다."


class SearchFailure(PlannerError):
    status_code = 502
    retryable = True
    default_message = "장소 검색 중 오류가 발생했습니다. 다시 시도해주세요."


class DiscoveryFailure(PlannerError):
    status_code = 502
    retryable = True
    default_message = "인기 장소를 검색하는 중 오류가 발생했습니다. 다시 시도해주세요."


class NoCandidatesFailure(PlannerError):
    status_code = 404
    retryable = True
    default_message = "추천 장소를 찾을 수 없습니다."
