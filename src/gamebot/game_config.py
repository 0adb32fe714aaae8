"""
game.conf 로더

형식:
    [DOTA2]
    msg = Ancient defense, 5 stack!
    time = 10

- `[이름]` 줄이 새 섹션을 열고 기본값(Game on!, 0분)으로 등록
- 섹션 안의 `key = value` 줄이 msg / time 을 갱신
- 섹션 밖의 줄, 빈 줄, 형식이 틀린 줄은 무시
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from gamebot.utils import normalize_category

DEFAULT_MESSAGE: str    = "Game on!"
DEFAULT_DELAY: int      = 0

@dataclass(frozen=True)
class GameConfig:
    message: str        = DEFAULT_MESSAGE
    delay_minutes: int  = DEFAULT_DELAY

DEFAULT_GAME_CONFIG = GameConfig()

def parse_game_configs(text: str) -> Dict[str, GameConfig]:
    configs: Dict[str, GameConfig] = {}
    current: Optional[str]         = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("["):
            current = normalize_category(line.strip("[]"))
            configs[current] = GameConfig()
            continue
        if current is None or "=" not in line:
            continue

        key, value  = (part.strip() for part in line.split("=", 1))
        cfg         = configs[current]
        if key == "msg":
            cfg = GameConfig(message=value, delay_minutes=cfg.delay_minutes)
        elif key == "time":
            try:
                cfg = GameConfig(message=cfg.message, delay_minutes=int(value))
            except ValueError:
                # 숫자가 아니면 이전 값 유지
                logging.debug("game.conf [%s] time 값 무시: %r", current, value)
        configs[current] = cfg

    return configs

def load_game_configs(path: Union[str, Path]) -> Dict[str, GameConfig]:
    """파일이 없거나 읽을 수 없으면 빈 dict (모든 게임이 기본값 사용)"""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logging.info("게임 설정 파일을 읽지 못해 기본값 사용: %s (%s)", path, e)
        return {}
    configs = parse_game_configs(text)
    logging.info("게임 설정 %d개 로드: %s", len(configs), ", ".join(configs) or "-")
    return configs

def get_game_config(configs: Dict[str, GameConfig], game: str) -> GameConfig:
    return configs.get(normalize_category(game), DEFAULT_GAME_CONFIG)
