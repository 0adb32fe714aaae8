from __future__ import annotations

import logging

from typing                 import (
    Dict,
    List,
    Optional,
)
from telegram               import BotCommand, Update, User
from telegram.constants     import ParseMode
from telegram.error         import TelegramError
from telegram.ext           import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
)
from gamebot.alert_service  import create_group_summary
from gamebot.dispatcher     import GatheringDispatcher, TelegramTransport
from gamebot.game_config    import GameConfig, get_game_config
from gamebot.registry       import BotState, JoinResult
from gamebot.user_store     import Subscriber
from gamebot.utils          import category_key, normalize_category, parse_int_arg

# --------------------------------------
# 상수
# --------------------------------------
WELCOME_TEXT: str       = "🎮 <b>Game Bot Active</b>\nGatherings tag everyone; /list is silent."
GAME_NOW_TEXT: str      = "Starting NOW!"
SCHEDULED_INVITER: str  = "Scheduled System"

BOT_COMMANDS: List[BotCommand] = [
    BotCommand("join",    "Join a game category"),
    BotCommand("leave",   "Leave a game category"),
    BotCommand("goplay",  "Call a gathering: /goplay <game> [minutes]"),
    BotCommand("gamenow", "Call a gathering right now"),
    BotCommand("list",    "Show categories (no tags)"),
]

def _inviter_name(user: Optional[User]) -> str:
    if user is None:
        return ""
    return user.username or user.first_name or str(user.id)

# --------------------------------------
# 명령어 핸들러
# --------------------------------------
class GameCommands:
    """
    명령어 처리기. 상태/디스패처/게임 설정을 주입받음 (전역 없음)
    - 구독 변경 후에는 매번 전체 상태를 파일에 저장
    - 관리자 명령어를 owner 가 아닌 사용자가 쓰면 아무 응답도 하지 않음
    """
    def __init__(
            self,
            state: BotState,
            dispatcher: GatheringDispatcher,
            game_configs: Dict[str, GameConfig],
            owner_id: int,
    ) -> None:
        self.state          = state
        self.dispatcher     = dispatcher
        self.game_configs   = game_configs
        self.owner_id       = owner_id

    def _is_owner(self, update: Update) -> bool:
        user = update.effective_user
        return user is not None and self.owner_id != 0 and user.id == self.owner_id

    # ------------- 일반 명령어 -------------
    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_chat.send_message(WELCOME_TEXT, parse_mode=ParseMode.HTML)

    async def join(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not context.args:
            await update.effective_chat.send_message("❌ Usage: /join <game>")
            return

        user        = update.effective_user
        key         = category_key(update.effective_chat.id, context.args[0])
        subscriber  = Subscriber(id=user.id, display_name=user.first_name or "")

        result = await self.state.registry.join(key, subscriber)
        if result is JoinResult.ALREADY_MEMBER:
            await update.effective_message.reply_text("✨ Already in list.")
            return

        logging.info("구독: 채팅 %s / %s ← %s", key[0], key[1], user.id)
        await self.state.flush()
        await update.effective_message.reply_text(f"✅ Joined {key[1]}")

    async def leave(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not context.args:
            await update.effective_chat.send_message("❌ Usage: /leave <game>")
            return

        user = update.effective_user
        key  = category_key(update.effective_chat.id, context.args[0])
        if await self.state.registry.leave(key, user.id):
            logging.info("구독 해제: 채팅 %s / %s ← %s", key[0], key[1], user.id)
            await self.state.flush()
        await update.effective_message.reply_text(f"🗑 Left {key[1]}")

    async def goplay(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not context.args:
            await update.effective_chat.send_message("❌ Usage: /goplay <game> [minutes]")
            return

        game        = normalize_category(context.args[0])
        config      = get_game_config(self.game_configs, game)
        delay       = config.delay_minutes
        override    = parse_int_arg(context.args, 1)
        if override is not None:
            delay = override

        chat_id = update.effective_chat.id
        if delay > 0:
            await self.dispatcher.dispatch_delayed(chat_id, game, config.message, SCHEDULED_INVITER, delay)
            await update.effective_message.reply_text(f"⏳ Scheduled {game} in {delay} mins.")
            return
        await self.dispatcher.dispatch_now(chat_id, game, config.message, _inviter_name(update.effective_user))

    async def gamenow(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not context.args:
            await update.effective_chat.send_message("❌ Usage: /gamenow <game>")
            return
        await self.dispatcher.dispatch_now(
            update.effective_chat.id,
            normalize_category(context.args[0]),
            GAME_NOW_TEXT,
            _inviter_name(update.effective_user),
        )

    async def list_categories(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        categories = self.state.registry.list_all(update.effective_chat.id)
        await update.effective_chat.send_message(create_group_summary(categories), parse_mode=ParseMode.HTML)

    # ------------- 관리자 명령어 -------------
    async def ban(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._is_owner(update):
            return
        user_id = parse_int_arg(context.args or [], 0)
        if user_id is None:
            await update.effective_chat.send_message("❌ Usage: /ban <userId>")
            return

        self.state.bans.ban(user_id)
        logging.info("차단: %s", user_id)
        await self.state.flush()
        await update.effective_chat.send_message(f"🔨 User {user_id} restricted (No tags in /list).")

    async def unban(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._is_owner(update):
            return
        user_id = parse_int_arg(context.args or [], 0)
        if user_id is None:
            await update.effective_chat.send_message("❌ Usage: /unban <userId>")
            return

        self.state.bans.unban(user_id)
        logging.info("차단 해제: %s", user_id)
        await self.state.flush()
        await update.effective_chat.send_message(f"✅ User {user_id} unrestricted.")

    async def rmcat(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._is_owner(update):
            return
        if not context.args:
            await update.effective_chat.send_message("❌ Usage: /rmcat <game>")
            return

        key = category_key(update.effective_chat.id, context.args[0])
        await self.state.registry.clear_category(key)
        logging.info("카테고리 삭제: 채팅 %s / %s", key[0], key[1])
        await self.state.flush()
        await update.effective_chat.send_message("🗑 Category removed.")

# --------------------------------------
# Bot Factory
# --------------------------------------
def create_bot(token: str, state: BotState) -> Application:
    """
    Application 생성. 명령어는 동시에 처리 (concurrent_updates)
    종료 신호(SIGINT/SIGTERM)는 run_polling 이 처리하고,
    post_stop 에서 마지막으로 상태를 동기 저장한 뒤 전송 계층이 내려감
    """
    async def on_ready(app: Application) -> None:
        logging.info("%s 실행됨", app.bot.username)
        try:
            await app.bot.set_my_commands(BOT_COMMANDS)
        except TelegramError as e:
            logging.warning("명령어 메뉴 등록 실패: %s", e)

    async def on_stop(app: Application) -> None:
        if state.flush_sync():
            logging.info("종료 전 상태 저장 완료: %s", state.store_path)
        else:
            logging.error("종료 전 상태 저장 실패: %s", state.store_path)

    return (
        ApplicationBuilder()
        .token(token)
        .concurrent_updates(True)
        .post_init(on_ready)
        .post_stop(on_stop)
        .build()
    )

async def _log_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logging.error("업데이트 처리 중 예외: %s", context.error, exc_info=context.error)

def setup_bot_commands(
    app: Application,
    state: BotState,
    game_configs: Dict[str, GameConfig],
    owner_id: int,
) -> GameCommands:
    dispatcher  = GatheringDispatcher(state.registry, TelegramTransport(app.bot))
    handlers    = GameCommands(state, dispatcher, game_configs, owner_id)

    app.add_handlers([
        CommandHandler("start",   handlers.start),
        CommandHandler("join",    handlers.join),
        CommandHandler("leave",   handlers.leave),
        CommandHandler("goplay",  handlers.goplay),
        CommandHandler("gamenow", handlers.gamenow),
        CommandHandler("list",    handlers.list_categories),
        CommandHandler("ban",     handlers.ban),
        CommandHandler("unban",   handlers.unban),
        CommandHandler("rmcat",   handlers.rmcat),
    ])
    app.add_error_handler(_log_error)
    return handlers
