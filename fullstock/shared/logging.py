"""구조화된 로깅 유틸리티"""
import logging
import logging.config
from typing import Optional
import sys

from fullstock.shared.config import get_settings


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """로거 인스턴스 반환"""
    settings = get_settings()

    if not level:
        level = settings.log_level.upper()

    log_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': settings.log_format
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'stream': sys.stdout
            }
        },
        'loggers': {
            name: {
                'handlers': ['console'],
                'level': level,
                'propagate': False
            }
        },
        'root': {
            'handlers': ['console'],
            'level': level
        }
    }

    logging.config.dictConfig(log_config)
    return logging.getLogger(name)


def mask_token(value: Optional[str], length: int = 6) -> str:
    """로그용 토큰 미리보기 (앞부분만 노출)"""
    if not value:
        return "<none>"
    if len(value) <= length:
        return "***"
    return f"{value[:length]}..."


def log_sync_transition(logger: logging.Logger, run_id: str, state_from: str, state_to: str):
    """동기화 상태 전이 로그"""
    log_data = {
        'run_id': run_id,
        'state_from': state_from,
        'state_to': state_to
    }

    logger.info(f"Sync run {run_id}: {state_from} -> {state_to}", extra=log_data)


def log_api_request(logger: logging.Logger, method: str, endpoint: str, status_code: int, duration: float):
    """API 요청 로그"""
    log_data = {
        'http_method': method,
        'endpoint': endpoint,
        'status_code': status_code,
        'duration_ms': duration * 1000
    }

    logger.info(f"API Request: {method} {endpoint} - {status_code}", extra=log_data)
