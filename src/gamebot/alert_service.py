import html
from typing import List, Sequence, Tuple

from telegram.helpers import mention_html

from gamebot.user_store import Subscriber

# 전송 메시지 길이 제한 때문에 멘션은 앞에서부터 최대 50명
MENTION_LIMIT: int = 50

def build_mentions(subscribers: Sequence[Subscriber], limit: int = MENTION_LIMIT) -> str:
    # TODO: 차단 사용자를 멘션에서 뺄지 정해지면 여기서 BanList 로 거르기 (지금은 전원 태그)
    return ", ".join(mention_html(sub.id, sub.display_name) for sub in subscribers[:limit])

def create_gathering_message(
    category: str,
    body: str,
    invited_by: str,
    subscribers: Sequence[Subscriber],
) -> str:
    mentions = build_mentions(subscribers)
    return (
        f"🎮 <b>{html.escape(category)}</b>\n"
        f"{html.escape(body)}\n\n"
        f"Invited by: {html.escape(invited_by)}\n\n"
        f"🔔 {mentions}"
    )

def create_group_summary(categories: List[Tuple[str, List[Subscriber]]]) -> str:
    """/list 출력: 이름은 전부 일반 텍스트 (차단 여부와 무관하게 아무도 태그하지 않음)"""
    if not categories:
        return "📋 No active categories."

    lines = ["📋 <b>Group Categories:</b>\n"]
    for category, members in categories:
        names = ", ".join(html.escape(m.display_name) for m in members)
        lines.append(f"\n🔹 <b>{html.escape(category)}</b> ({len(members)}): {names}")
    return "".join(lines)
