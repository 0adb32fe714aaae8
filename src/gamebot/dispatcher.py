from __future__ import annotations

import asyncio
import logging

from typing                 import (
    Awaitable,
    Callable,
    Optional,
    Set,
)
from telegram               import Bot, Message
from telegram.constants     import ParseMode
from telegram.error         import Forbidden, TelegramError

from gamebot.alert_service  import create_gathering_message
from gamebot.registry       import SubscriptionRegistry
from gamebot.utils          import category_key

SleepFunc = Callable[[float], Awaitable[None]]

# --------------------------------------
# 전송 어댑터 (텔레그램 Bot 래핑)
# --------------------------------------
class TelegramTransport:
    """HTML 메시지 전송 + 고정. 테스트에서는 같은 메서드를 가진 가짜로 교체"""
    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send_html(self, chat_id: int, text: str) -> Message:
        return await self.bot.send_message(chat_id=chat_id, text=text, parse_mode=ParseMode.HTML)

    async def pin(self, message: Message) -> bool:
        # 고정 권한이 없는 채팅도 많음: 실패해도 전송은 성공으로 취급
        try:
            await self.bot.pin_chat_message(chat_id=message.chat_id, message_id=message.message_id)
            return True
        except Forbidden:
            logging.warning("메시지 고정 권한 없음(채팅 ID=%s)", message.chat_id)
        except TelegramError as e:
            logging.warning("메시지 고정 실패(채팅 ID=%s): %s", message.chat_id, e)
        return False

# --------------------------------------
# 모임 알림 디스패처
# --------------------------------------
class GatheringDispatcher:
    """
    모임 알림 작성/전송기.
    - dispatch_now     : 즉시 전송 + 고정 (재시도 없음, 실패는 로그만)
    - dispatch_delayed : N분 뒤 1회 전송하는 asyncio.Task 예약 (0 이하면 즉시)
    - 전송 중에는 레지스트리 락을 잡지 않음 (복사본으로 메시지 작성)
    """
    def __init__(
            self,
            registry: SubscriptionRegistry,
            transport: TelegramTransport,
            sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.registry                       = registry
        self.transport                      = transport
        self._sleep                         = sleep
        # 예약 작업 참조 유지 (GC 방지). 완료되면 자동 제거
        self._pending: Set[asyncio.Task]    = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def build_announcement(self, group_id: int, category: str, body: str, invited_by: str) -> str:
        key = category_key(group_id, category)
        return create_gathering_message(key[1], body, invited_by, self.registry.get(key))

    async def dispatch_now(
            self,
            group_id: int,
            category: str,
            body: str,
            invited_by: str,
    ) -> Optional[Message]:
        text = self.build_announcement(group_id, category, body, invited_by)
        try:
            message = await self.transport.send_html(group_id, text)
        except Forbidden:
            logging.error("메시지 전송 권한 없음(채팅 ID=%s)", group_id)
            return None
        except TelegramError as e:
            logging.warning("모임 알림 전송 실패(채팅 ID=%s, %s): %s", group_id, category, e)
            return None

        await self.transport.pin(message)
        logging.info("모임 알림 전송: 채팅 %s / %s (초대: %s)", group_id, category.upper(), invited_by)
        return message

    async def dispatch_delayed(
            self,
            group_id: int,
            category: str,
            body: str,
            invited_by: str,
            delay_minutes: int,
    ) -> Optional[asyncio.Task]:
        """
        delay_minutes 분 뒤 dispatch_now 를 1회 실행하는 작업을 예약하고 반환.
        0 이하면 타이머 없이 즉시 전송하고 None 반환.
        반환된 Task 는 cancel() 가능 (명령어로는 노출하지 않음)
        """
        if delay_minutes <= 0:
            await self.dispatch_now(group_id, category, body, invited_by)
            return None

        task = asyncio.create_task(
            self._dispatch_later(group_id, category, body, invited_by, delay_minutes),
            name=f"gathering:{group_id}:{category.upper()}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        logging.info("모임 알림 예약: 채팅 %s / %s, %d분 뒤", group_id, category.upper(), delay_minutes)
        return task

    async def _dispatch_later(
            self,
            group_id: int,
            category: str,
            body: str,
            invited_by: str,
            delay_minutes: int,
    ) -> None:
        try:
            await self._sleep(delay_minutes * 60)
            await self.dispatch_now(group_id, category, body, invited_by)
        except Exception:
            logging.exception("예약 알림 처리 중 예외(채팅 ID=%s, %s)", group_id, category)
