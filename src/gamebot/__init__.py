"""
게임 모집 텔레그램 봇 패키지 퍼사드(facade).

- 이 파일은 디렉터리를 '패키지'로 인식시키고, 외부에서 사용할 공개 API를 정리합니다.
- 무거운 작업(봇 실행, 네트워크/파일 IO 등)은 절대 수행하지 않습니다.  # 사이드이펙트 금지

공개 API(요약)
- main       : (엔트리포인트는 별도 파일 main.py)
- config     : ConfigLoader, load_settings, load_game_configs, GameConfig
- store      : load_store, save_store, Subscriber, StoreSnapshot
- registry   : SubscriptionRegistry, BanList, BotState, JoinResult
- alerts     : create_gathering_message, create_group_summary
- dispatcher : GatheringDispatcher, TelegramTransport
- bot        : create_bot, setup_bot_commands, GameCommands
- utils      : get_app_dir, category_key
- logging    : setup_logger
"""

from __future__ import annotations

from .config_loader   import ConfigLoader, Settings, load_settings
from .game_config     import GameConfig, load_game_configs, get_game_config
from .user_store      import Subscriber, StoreSnapshot, load_store, save_store
from .registry        import SubscriptionRegistry, BanList, BotState, JoinResult
from .alert_service   import create_gathering_message, create_group_summary
from .dispatcher      import GatheringDispatcher, TelegramTransport
from .bot_factory     import create_bot, setup_bot_commands, GameCommands
from .utils           import get_app_dir, category_key
from .logger          import setup_logger

# 외부에 노출할 심볼만 명시
__all__: list[str] = [
    "ConfigLoader", "Settings", "load_settings",
    "GameConfig", "load_game_configs", "get_game_config",
    "Subscriber", "StoreSnapshot", "load_store", "save_store",
    "SubscriptionRegistry", "BanList", "BotState", "JoinResult",
    "create_gathering_message", "create_group_summary",
    "GatheringDispatcher", "TelegramTransport",
    "create_bot", "setup_bot_commands", "GameCommands",
    "get_app_dir", "setup_logger", "category_key",
]

# 패키지 버전 (필요 시 CI에서 자동 주입 가능)
__version__: str = "0.1.0"
