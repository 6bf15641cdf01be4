"""
목적:
- 백엔드 문서 스키마의 필드 타입 카탈로그를 정의한다.

설명:
- 필드 경로 -> 선언 타입 매핑과 반복 하위 문서(nested) 경로를 보관한다.
- 프로세스 시작 시 1회 생성되고 이후에는 읽기 전용으로 공유된다.

디자인 패턴:
- 값 객체(Value Object).

참조:
- src_py/talent_search/filters/normalizer.py
- src_py/talent_search/config/models.py
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from talent_search.contracts.filter_models import FieldType


class SchemaCatalog(BaseModel):
    """필드 타입 카탈로그 모델."""

    model_config = ConfigDict(frozen=True)

    field_types: dict[str, FieldType] = Field(min_length=1)
    nested_paths: frozenset[str] = Field(default_factory=frozenset)
    id_field: str = Field(default="id", min_length=1)
    text_fields: tuple[str, ...] = Field(default=())

    @model_validator(mode="after")
    def validate_references(self) -> "SchemaCatalog":
        if self.id_field not in self.field_types:
            raise ValueError(f"id_field가 카탈로그에 없습니다: {self.id_field}")
        if self.field_types[self.id_field] is not FieldType.KEYWORD:
            raise ValueError(f"id_field는 keyword 타입이어야 합니다: {self.id_field}")

        for nested_path in self.nested_paths:
            if not any(path.startswith(nested_path + ".") for path in self.field_types):
                raise ValueError(f"nested 경로에 속한 필드가 없습니다: {nested_path}")
        return self

    def field_type(self, field_path: str) -> FieldType | None:
        return self.field_types.get(field_path)

    def nested_path_for(self, field_path: str) -> str | None:
        """필드가 속한 가장 깊은 nested 경로를 반환한다."""
        matches = [path for path in self.nested_paths if field_path.startswith(path + ".")]
        if not matches:
            return None
        return max(matches, key=len)
