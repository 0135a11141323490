from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mindpoints.config import settings


def _engine_kwargs() -> dict:
    if settings.is_sqlite:
        # SQLite는 커넥션 풀 옵션을 지원하지 않음
        return {"connect_args": {"check_same_thread": False}}

    kwargs = {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # 연결 유효성 검사
        "pool_recycle": 3600,  # 1시간마다 연결 재생성
    }
    if settings.POSTGRES_SCHEMA:
        kwargs["connect_args"] = {
            "options": f"-csearch_path={settings.POSTGRES_SCHEMA}"
        }
    return kwargs


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # 디버그 모드에서 SQL 로깅
    **_engine_kwargs(),
)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
