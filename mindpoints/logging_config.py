import logging.config
import sys
from typing import Any, Dict


def build_logging_config(log_level: str = "INFO") -> Dict[str, Any]:
    """dictConfig 설정

    - 애플리케이션 로그(mindpoints.*)는 stdout, ERROR 이상은 stderr 에 위치 정보와 함께 출력
    - backoff 재시도 로그는 WARNING 이상만 (개별 재시도는 retry 모듈에서 기록)
    - SQL 로그는 DEBUG 모드의 engine echo 로만 노출
    """
    level = log_level.upper()
    app_handlers = ["stdout", "stderr"]

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "line": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)-28s | %(message)s",
            },
            "located": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s (%(pathname)s:%(lineno)d)\n%(message)s",
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "line",
                "stream": sys.stdout,
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "located",
                "stream": sys.stderr,
                "level": "ERROR",
            },
        },
        "root": {"handlers": app_handlers, "level": level},
        "loggers": {
            "mindpoints": {"handlers": app_handlers, "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["stdout"], "level": level, "propagate": False},
            "backoff": {"handlers": ["stdout"], "level": "WARNING", "propagate": False},
            "sqlalchemy.engine": {"handlers": ["stdout"], "level": "WARNING", "propagate": False},
        },
    }


def setup_logging(log_level: str = "INFO"):
    logging.config.dictConfig(build_logging_config(log_level))
