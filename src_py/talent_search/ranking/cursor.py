"""
목적:
- 커서 기반 페이지네이션용 불투명 토큰을 정의한다.

설명:
- 마지막으로 반환한 `(보정 점수, 문서 ID)` 쌍과 첫 페이지의 기준 시각을 담는다.
- 기준 시각을 고정해 최신성 가중치/노출 규칙이 페이지 사이에서 흔들리지 않게 한다.
- 요청 지문(fingerprint)으로 다른 요청의 커서 재사용을 거부한다.

디자인 패턴:
- 값 객체(Value Object).

참조:
- src_py/talent_search/ranking/ranker.py
- src_py/talent_search/search/engine.py
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from talent_search.contracts.search_models import SearchRequest
from talent_search.exceptions import ValidationError

CURSOR_VERSION = 1


class PagingMode(str, Enum):
    """`backend`: search_after 위임, `window`: 후보 윈도 내 재정렬."""

    BACKEND = "backend"
    WINDOW = "window"


@dataclass(frozen=True, slots=True)
class CursorKey:
    score: float
    doc_id: str

    def follows(self, other: "CursorKey") -> bool:
        """정렬 순서(점수 내림차순, ID 오름차순)에서 `other`보다 뒤인지 확인한다."""
        if self.score != other.score:
            return self.score < other.score
        return self.doc_id > other.doc_id


class PageCursor(BaseModel):
    """페이지 커서 모델."""

    model_config = ConfigDict(frozen=True)

    version: int = Field(default=CURSOR_VERSION)
    score: float
    doc_id: str = Field(min_length=1)
    reference_time: datetime
    mode: PagingMode
    fingerprint: str = Field(min_length=1)

    @property
    def key(self) -> CursorKey:
        return CursorKey(score=self.score, doc_id=self.doc_id)

    def encode(self) -> str:
        raw = self.model_dump_json().encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> "PageCursor":
        padded = token + "=" * (-len(token) % 4)
        try:
            raw = base64.urlsafe_b64decode(padded.encode("ascii"))
            cursor = cls.model_validate_json(raw)
        except (binascii.Error, UnicodeEncodeError, ValueError, PydanticValidationError) as exc:
            raise ValidationError("커서 형식이 잘못되었습니다", field="cursor") from exc

        if cursor.version != CURSOR_VERSION:
            raise ValidationError(f"지원하지 않는 커서 버전입니다: {cursor.version}", field="cursor")
        return cursor


def request_fingerprint(request: SearchRequest) -> str:
    """커서를 발급한 요청을 식별하는 지문을 계산한다(페이지 크기/커서 제외)."""
    payload = request.model_dump(
        mode="json",
        include={"criteria", "sort", "keywords", "epoch", "presented_ids"},
    )
    payload["boosts"] = sorted(request.boosts.items())
    digest = hashlib.sha256(json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8"))
    return digest.hexdigest()[:16]
