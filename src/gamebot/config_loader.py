import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from gamebot.utils import get_app_dir

# 설정 파일 키 → 덮어쓰는 환경 변수
ENV_OVERRIDES: Dict[str, str] = {
    "TOKEN":    "TG_TOKEN",
    "OWNER_ID": "TG_OWNER_ID",
}

class ConfigLoader:
    """
    Config.json 파일을 안전하게 읽어서 설정값을 반환하는 클래스
    (환경 변수가 있으면 파일 값보다 우선)

    예시:
        loader = ConfigLoader("/path/to/Config.json")
        token  = loader.get("TOKEN")
    """
    def __init__(self, config_path: str, environ: Optional[Dict[str, str]] = None) -> None:
        """
        Args:
            config_path (str): 읽을 Config.json 파일 경로
            environ (dict, optional): 테스트용 환경 변수 주입 (기본값 os.environ)
        """
        self.config_path                        = config_path
        self._environ                           = os.environ if environ is None else environ
        self._cache: Optional[Dict[str, Any]]   = None

    def load(self) -> Dict[str, Any]:
        """
        Config.json 파일을 읽어서 dict로 반환

        Returns:
            Dict[str, Any]: 설정값

        Raises:
            FileNotFoundError: 파일이 없을 때
            json.JSONDecodeError: JSON 문법 오류
            ValueError: 최상위 구조가 dict가 아닐 때
        """
        try:
            with open(self.config_path, encoding="utf-8") as f:
                config = json.load(f)
        except FileNotFoundError as e:
            raise FileNotFoundError(f"설정 파일을 찾을 수 없습니다: {self.config_path}") from e
        if not isinstance(config, dict):
            raise ValueError("Config.json의 최상위 구조는 dict여야 합니다.")
        return config

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        특정 키의 값을 반환. 환경 변수 → 파일 → default 순서

        Args:
            key (str): 조회할 키
            default (Any, optional): 기본값

        Returns:
            Any: 설정값 또는 기본값
        """
        env_name = ENV_OVERRIDES.get(key)
        if env_name and self._environ.get(env_name):
            return self._environ[env_name]

        if self._cache is None:
            try:
                self._cache = self.load()
            except (OSError, ValueError):
                # 파일이 없거나 깨졌으면 기본값으로 동작
                self._cache = {}
        value = self._cache.get(key)
        return default if value in (None, "") else value

@dataclass
class Settings:
    token: str
    owner_id: int
    store_path: Path
    game_config_path: Path
    log_level: str = "INFO"

def load_settings(loader: ConfigLoader, app_dir: Optional[Path] = None) -> Settings:
    """
    런타임 설정 조립. 토큰이 없으면 ValueError (봇을 띄울 수 없음)
    """
    base_dir    = app_dir if app_dir is not None else get_app_dir()
    token       = str(loader.get("TOKEN", "") or "").strip()
    if not token:
        raise ValueError("봇 토큰(TOKEN / TG_TOKEN)이 필요합니다.")

    try:
        owner_id = int(loader.get("OWNER_ID", 0))
    except (TypeError, ValueError):
        raise ValueError(f"OWNER_ID는 정수여야 합니다: {loader.get('OWNER_ID')!r}")

    return Settings(
        token               = token,
        owner_id            = owner_id,
        store_path          = Path(loader.get("STORE_PATH", base_dir / "config" / "subscriptions.json")),
        game_config_path    = Path(loader.get("GAME_CONFIG_PATH", base_dir / "config" / "game.conf")),
        log_level           = str(loader.get("LOG_LEVEL", "INFO")),
    )
