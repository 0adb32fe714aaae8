from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Optional

from telegram.error import TelegramError


class FakeTransport:
    """TelegramTransport 대역: 보낸 메시지와 고정 요청만 기록"""

    def __init__(self, *, send_error: Optional[Exception] = None, pin_ok: bool = True):
        self.sent: list[tuple[int, str]] = []
        self.pinned: list[int] = []
        self.send_error = send_error
        self.pin_ok = pin_ok
        self._next_id = 500

    async def send_html(self, chat_id: int, text: str):
        if self.send_error is not None:
            raise self.send_error
        self._next_id += 1
        self.sent.append((chat_id, text))
        return SimpleNamespace(chat_id=chat_id, message_id=self._next_id)

    async def pin(self, message) -> bool:
        if self.pin_ok:
            self.pinned.append(message.message_id)
        return self.pin_ok


class GatedSleep:
    """가상 시간: 요청된 지연을 기록하고 release() 전까지 대기"""

    def __init__(self):
        self.requested: list[float] = []
        self._gate = asyncio.Event()

    async def __call__(self, seconds: float) -> None:
        self.requested.append(seconds)
        await self._gate.wait()

    def release(self) -> None:
        self._gate.set()


class FakeChat:
    def __init__(self, chat_id: int):
        self.id = chat_id
        self.sent: list[str] = []

    async def send_message(self, text: str, parse_mode=None):
        self.sent.append(text)


class FakeMessage:
    def __init__(self):
        self.replies: list[str] = []

    async def reply_text(self, text: str, parse_mode=None):
        self.replies.append(text)


def make_update(chat: FakeChat, user_id: int, first_name: str = "Alice", username: Optional[str] = "alice"):
    return SimpleNamespace(
        effective_chat=chat,
        effective_user=SimpleNamespace(id=user_id, first_name=first_name, username=username),
        effective_message=FakeMessage(),
    )


def make_context(*args: str):
    return SimpleNamespace(args=list(args))


def transport_error(text: str = "boom") -> TelegramError:
    return TelegramError(text)
