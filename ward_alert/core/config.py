from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수에서 애플리케이션 설정을 로드"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    environment: Literal["local", "dev", "prod"] = "local"
    version: str = "0.1.0"
    log_level: str = "INFO"
    admin_id: str = "admin"
    admin_password: str = "admin"
    push_base_url: str = ""
    push_api_key: str = ""
    config_path: str = "ward.yaml"
    ward_db_path: str = "data/ward.duckdb"
    duckdb_path: str = "data/telemetry.duckdb"
    scheduler_enabled: bool = True


class AlertingConfig(BaseModel):
    """위급 알림 팬아웃 설정"""

    retry: int = Field(default=3, ge=1, description="알림 저장 최대 시도 횟수")
    dedupe_recipients: bool = Field(default=False, description="중복 수신자 제거 여부")
    redelivery_minutes: int = Field(default=5, gt=0, description="푸시 재전송 주기(분)")
    default_source: str = Field(default="sensor", description="기본 측정 출처")


class AppConfig(BaseModel):
    """YAML 설정 래퍼"""

    alerting: AlertingConfig = Field(default_factory=AlertingConfig)


@lru_cache
def get_settings() -> Settings:
    """캐시된 설정 인스턴스를 반환"""
    return Settings()


@lru_cache
def load_app_config() -> AppConfig:
    """설정 파일(YAML)에서 알림 설정 로드

    파일이 없으면 기본값을 사용한다.

    Returns:
        알림 설정 인스턴스
    """
    settings = get_settings()
    path = Path(settings.config_path)
    if not path.exists():
        return AppConfig()
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return AppConfig(**data)


def reload_app_config() -> AppConfig:
    """설정 캐시를 초기화하고 다시 로드

    Returns:
        알림 설정 인스턴스
    """
    load_app_config.cache_clear()
    return load_app_config()


def save_app_config(config: AppConfig) -> None:
    """설정을 YAML 파일에 저장

    Args:
        config: 저장할 설정
    """
    settings = get_settings()
    path = Path(settings.config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(config.model_dump(), handle, allow_unicode=True, sort_keys=False)
