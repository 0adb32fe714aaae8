"""
구독/차단 상태 관리 (동시성 안전)

- SubscriptionRegistry : (그룹, 카테고리) → 구독자 리스트. 키 단위 asyncio.Lock
- BanList              : 멘션에서 제외할 사용자 ID 집합
- BotState             : 두 저장소 + 파일 저장(전체 스냅샷 덮어쓰기)
"""
from __future__ import annotations

import asyncio
import enum
import logging

from contextlib             import asynccontextmanager
from pathlib                import Path
from typing                 import (
    AsyncIterator,
    Dict,
    Iterable,
    List,
    Optional,
    Set,
    Tuple,
)
from gamebot.user_store     import (
    StoreSnapshot,
    Subscriber,
    load_store,
    save_store,
)
from gamebot.utils          import CategoryKey

class JoinResult(enum.Enum):
    JOINED          = "joined"
    ALREADY_MEMBER  = "already_member"

# --------------------------------------
# 구독 레지스트리
# --------------------------------------
class SubscriptionRegistry:
    """
    카테고리 키별 구독자 리스트 (가입 순서 유지, id 중복 없음)
    - 같은 키에 대한 read-modify-write 는 키 전용 락으로 직렬화
    - 서로 다른 키는 서로를 막지 않음
    - 읽기는 락 없이 복사본 반환
    """
    def __init__(self) -> None:
        self._data: Dict[CategoryKey, List[Subscriber]]     = {}
        self._locks: Dict[CategoryKey, asyncio.Lock]        = {}
        # 키별 락을 쓰는(대기 포함) 작업 수. 0 이고 카테고리가 없으면 락 제거
        self._lock_users: Dict[CategoryKey, int]            = {}

    @asynccontextmanager
    async def _key_lock(self, key: CategoryKey) -> AsyncIterator[None]:
        # 이벤트 루프 단일 스레드: 조회~생성 사이에 await 없음
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            users = self._lock_users[key] - 1
            if users:
                self._lock_users[key] = users
            else:
                del self._lock_users[key]
                if key not in self._data:
                    self._locks.pop(key, None)

    async def join(self, key: CategoryKey, subscriber: Subscriber) -> JoinResult:
        async with self._key_lock(key):
            members = self._data.setdefault(key, [])
            if any(m.id == subscriber.id for m in members):
                return JoinResult.ALREADY_MEMBER
            members.append(subscriber)
            return JoinResult.JOINED

    async def leave(self, key: CategoryKey, user_id: int) -> bool:
        """구독자를 제거. 없는 카테고리/사용자는 no-op. 실제로 빠졌으면 True"""
        if key not in self._data:
            return False
        async with self._key_lock(key):
            members = self._data.get(key)
            if members is None:
                return False
            remaining = [m for m in members if m.id != user_id]
            removed = len(remaining) != len(members)
            # 비어도 카테고리는 남김 (/list 에 0명으로 표시)
            self._data[key] = remaining
            return removed

    async def clear_category(self, key: CategoryKey) -> bool:
        if key not in self._data:
            return False
        async with self._key_lock(key):
            return self._data.pop(key, None) is not None

    def get(self, key: CategoryKey) -> List[Subscriber]:
        return list(self._data.get(key, ()))

    def list_all(self, group_id: int) -> List[Tuple[str, List[Subscriber]]]:
        return [
            (category, list(members))
            for (gid, category), members in list(self._data.items())
            if gid == group_id
        ]

    def snapshot(self) -> Dict[CategoryKey, List[Subscriber]]:
        return {key: list(members) for key, members in list(self._data.items())}

    def restore(self, subscriptions: Dict[CategoryKey, List[Subscriber]]) -> None:
        """시작 시 1회: 저장 파일 내용으로 교체"""
        self._data = {key: list(members) for key, members in subscriptions.items()}

# --------------------------------------
# 차단 목록
# --------------------------------------
class BanList:
    """
    차단해도 구독/해제는 막지 않음 (구독 리스트에서도 빠지지 않음)
    (add/discard 모두 멱등)
    """
    def __init__(self, user_ids: Optional[Iterable[int]] = None) -> None:
        self._ids: Set[int] = set(user_ids or ())

    def ban(self, user_id: int) -> None:
        self._ids.add(user_id)

    def unban(self, user_id: int) -> None:
        self._ids.discard(user_id)

    def is_banned(self, user_id: int) -> bool:
        return user_id in self._ids

    def snapshot(self) -> Set[int]:
        return set(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

# --------------------------------------
# 봇 상태 (레지스트리 + 차단 목록 + 저장)
# --------------------------------------
class BotState:
    def __init__(self, store_path: Path) -> None:
        self.store_path: Path                   = Path(store_path)
        self.registry: SubscriptionRegistry     = SubscriptionRegistry()
        self.bans: BanList                      = BanList()

    def load(self) -> bool:
        """저장 파일이 있으면 상태 복원. 없거나 깨졌으면 빈 상태 유지"""
        snapshot = load_store(self.store_path)
        if snapshot is None:
            return False
        self.registry.restore(snapshot.subscriptions)
        self.bans = BanList(snapshot.ban_list)
        return True

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            subscriptions   = self.registry.snapshot(),
            ban_list        = self.bans.snapshot(),
        )

    def flush_sync(self) -> bool:
        """종료 시 마지막 동기 저장용"""
        return save_store(self.store_path, self.snapshot())

    async def flush(self) -> bool:
        # 스냅샷은 루프에서 뜨고, 파일 IO만 개별 스레드로
        snapshot = self.snapshot()
        ok = await asyncio.to_thread(save_store, self.store_path, snapshot)
        if not ok:
            logging.warning("상태 저장 실패: 메모리 상태 유지 (%s)", self.store_path)
        return ok
