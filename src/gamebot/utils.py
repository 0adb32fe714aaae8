import sys
from pathlib import Path
from typing import List, Optional, Tuple

# (그룹 ID, 대문자 카테고리명)
CategoryKey = Tuple[int, str]

def get_app_dir() -> Path:
    if getattr(sys, 'frozen', False):
        # PyInstaller로 패키징된 경우
        return Path(sys._MEIPASS)
    else:
        # 일반 파이썬 실행일 경우: main.py 기준 경로
        return Path(sys.argv[0]).resolve().parent

def normalize_category(name: str) -> str:
    return name.strip().upper()

def category_key(group_id: int, category: str) -> CategoryKey:
    """모든 진입점에서 대소문자를 통일 ("dota2" == "DOTA2")"""
    return int(group_id), normalize_category(category)

def format_key(key: CategoryKey) -> str:
    """저장 파일용 직렬화: "groupId:CATEGORY" """
    group_id, category = key
    return f"{group_id}:{category}"

def parse_key(raw: str) -> Optional[CategoryKey]:
    """
    "groupId:CATEGORY" 문자열을 키로 복원. 형식이 틀리면 None
    (텔레그램 그룹 ID는 음수일 수 있음: "-100123:PUBG")
    """
    if not isinstance(raw, str) or ":" not in raw:
        return None
    group_part, category = raw.split(":", 1)
    try:
        group_id = int(group_part.strip())
    except ValueError:
        return None
    if not category.strip():
        return None
    return category_key(group_id, category)

def parse_int_arg(args: List[str], index: int) -> Optional[int]:
    """명령어 인자 중 index 위치의 정수. 없거나 숫자가 아니면 None"""
    if len(args) <= index:
        return None
    try:
        return int(args[index])
    except ValueError:
        return None
