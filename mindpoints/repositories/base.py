from abc import ABC
from typing import TypeVar, Generic, Optional, Any, Type
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """모든 리포지토리의 베이스 클래스 - Pydantic 응답 보장"""

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy 모델을 Pydantic 스키마로 변환"""
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _fresh_query(self):
        """identity map 의 캐시된 값 대신 항상 DB 의 최신 값을 읽는 쿼리"""
        return self.db.query(self.model_class).populate_existing()

    def get_by_field(self, field_name: str, value: Any) -> Optional[T]:
        """특정 필드로 최신 레코드 조회"""
        return (
            self._fresh_query()
            .filter(getattr(self.model_class, field_name) == value)
            .first()
        )

    def add(self, **kwargs) -> T:
        """레코드 추가 후 flush (커밋은 호출자의 작업 단위에서 수행)"""
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance
