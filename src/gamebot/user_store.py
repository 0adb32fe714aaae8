import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

from gamebot.utils import CategoryKey, format_key, parse_key

@dataclass(frozen=True)
class Subscriber:
    """식별자는 id. display_name 은 표시용 (바뀌어도 같은 사람)"""
    id: int
    display_name: str

    def to_json(self) -> Dict[str, Any]:
        return {"id": self.id, "first_name": self.display_name}

    @classmethod
    def from_json(cls, data: Any) -> Optional["Subscriber"]:
        if not isinstance(data, dict) or "id" not in data:
            return None
        try:
            user_id = int(data["id"])
        except (TypeError, ValueError):
            return None
        return cls(id=user_id, display_name=str(data.get("first_name") or ""))

@dataclass
class StoreSnapshot:
    subscriptions: Dict[CategoryKey, List[Subscriber]]  = field(default_factory=dict)
    ban_list: Set[int]                                  = field(default_factory=set)

def _decode_subscriptions(raw: Dict[str, Any]) -> Dict[CategoryKey, List[Subscriber]]:
    """
    {"groupId:CATEGORY": [{"id":..,"first_name":..}, ...]} → {키: [Subscriber]}
    - 키/항목 단위로 깨진 것만 건너뜀
    - null 리스트는 빈 리스트로
    """
    result: Dict[CategoryKey, List[Subscriber]] = {}
    for raw_key, raw_list in raw.items():
        key = parse_key(raw_key)
        if key is None:
            logging.warning("저장 파일의 잘못된 카테고리 키 무시: %r", raw_key)
            continue
        if raw_list is None:
            raw_list = []
        if not isinstance(raw_list, list):
            raise ValueError(f"{raw_key!r} 값이 리스트가 아닙니다.")

        members: List[Subscriber] = result.setdefault(key, [])
        seen                      = {m.id for m in members}
        for item in raw_list:
            sub = Subscriber.from_json(item)
            if sub is None or sub.id in seen:
                continue
            seen.add(sub.id)
            members.append(sub)
    return result

def _decode_ban_list(raw: Any) -> Set[int]:
    if raw is None:
        return set()
    if not isinstance(raw, dict):
        raise ValueError("ban_list 는 dict여야 합니다.")
    banned: Set[int] = set()
    for user_id, flag in raw.items():
        if not flag:
            continue
        try:
            banned.add(int(user_id))
        except (TypeError, ValueError):
            logging.warning("저장 파일의 잘못된 차단 ID 무시: %r", user_id)
    return banned

def decode_store(data: Any) -> StoreSnapshot:
    """
    현재 스키마 {"subscriptions": {...}, "ban_list": {...}} 우선,
    실패하면 구버전 스키마(키 → 구독자 리스트 dict, 차단 목록 없음)로 해석

    Raises:
        ValueError: 어느 스키마로도 해석할 수 없을 때
    """
    if not isinstance(data, dict):
        raise ValueError("최상위 구조는 dict여야 합니다.")

    if isinstance(data.get("subscriptions"), dict):
        try:
            return StoreSnapshot(
                subscriptions   = _decode_subscriptions(data["subscriptions"]),
                ban_list        = _decode_ban_list(data.get("ban_list")),
            )
        except ValueError as e:
            logging.warning("현재 스키마 해석 실패, 구버전 스키마 시도: %s", e)

    return StoreSnapshot(subscriptions=_decode_subscriptions(data), ban_list=set())

def encode_store(snapshot: StoreSnapshot) -> Dict[str, Any]:
    return {
        "subscriptions": {
            format_key(key): [sub.to_json() for sub in members]
            for key, members in snapshot.subscriptions.items()
        },
        "ban_list": {str(user_id): True for user_id in sorted(snapshot.ban_list)},
    }

def load_store(file_path: Union[str, Path]) -> Optional[StoreSnapshot]:
    """
    저장 파일을 읽어 StoreSnapshot 으로 반환
    - 파일 없음 / 깨진 파일 → None (호출 측은 빈 상태로 시작)
    """
    path = Path(file_path)
    if not path.exists():
        logging.info("저장 파일 없음, 빈 상태로 시작: %s", path)
        return None
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        snapshot = decode_store(data)
    except (OSError, ValueError) as e:
        # json.JSONDecodeError 도 ValueError
        logging.warning("저장 파일 로드 실패, 빈 상태로 시작: %s (%s)", path, e)
        return None

    logging.info(
        "저장 파일 로드: 카테고리 %d개, 차단 %d명",
        len(snapshot.subscriptions), len(snapshot.ban_list),
    )
    return snapshot

def save_store(file_path: Union[str, Path], snapshot: StoreSnapshot) -> bool:
    """
    전체 스냅샷을 파일에 통째로 덮어씀 (임시 파일 작성 후 교체)
    실패해도 예외를 던지지 않고 False 반환 (메모리 상태가 기준)
    """
    path = Path(file_path)
    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=path.name + ".", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(encode_store(snapshot), f, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
        return True
    except OSError as e:
        logging.warning("저장 파일 쓰기 실패: %s (%s)", path, e)
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        return False
