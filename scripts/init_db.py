import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from mindpoints.database.connection import engine
from mindpoints.config import settings
from mindpoints.models import Base


def init_db():
    """데이터베이스 초기화 (points_accounts, points_transactions, coupons)"""
    try:
        # 스키마 생성 (PostgreSQL 전용)
        if settings.POSTGRES_SCHEMA and not settings.is_sqlite:
            with engine.connect() as conn:
                conn.execute(
                    text(f"CREATE SCHEMA IF NOT EXISTS {settings.POSTGRES_SCHEMA}")
                )
                conn.commit()

        # 테이블 생성
        Base.metadata.create_all(bind=engine)
        print(
            f"Database initialized successfully "
            f"(schema: {settings.POSTGRES_SCHEMA or 'default'})"
        )

    except Exception as e:
        print(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
