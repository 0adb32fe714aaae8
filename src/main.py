import sys
import logging
from gamebot.logger         import setup_logger
from gamebot.utils          import get_app_dir
from gamebot.config_loader  import ConfigLoader, load_settings
from gamebot.game_config    import load_game_configs
from gamebot.registry       import BotState
from gamebot.bot_factory    import create_bot, setup_bot_commands

def main() -> None:
    app_dir         = get_app_dir()
    config          = ConfigLoader(app_dir / "config" / "Config.json")

    try:
        settings    = load_settings(config, app_dir)
    except ValueError as e:
        setup_logger()
        logging.error(f"설정 로드 실패: {e}")
        sys.exit(1)

    setup_logger(settings.log_level)
    game_configs    = load_game_configs(settings.game_config_path)
    state           = BotState(settings.store_path)
    state.load()

    app = create_bot(settings.token, state)
    setup_bot_commands(app, state, game_configs, settings.owner_id)
    app.run_polling(allowed_updates=["message"])

if __name__ == "__main__":
    main()
