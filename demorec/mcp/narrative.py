"""
Narrative — 操作ログからの要約文生成

記録された操作ログから、SNS 投稿にそのまま使える定型の要約文を生成する。
副作用を持たない純粋関数のため、同じログからは常に同じ文字列が得られる。
"""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlparse

from .recorder import InteractionEvent, InteractionKind

# 操作ログが空のときに返す固定文
FALLBACK_SUMMARY = "Check out this demo! 🚀"

# 「キーモーメント」として列挙するイベント数
KEY_MOMENT_COUNT = 3

_HASHTAGS = "#Demo #WebAutomation #Tutorial #TechDemo #Playwright"
_CALL_TO_ACTION = "👇 Watch the full video to see it in action!"


def _url_path(url: str) -> str:
    """URL のパス部分のみを返す（空の場合は "/"）。"""
    return urlparse(url).path or "/"


def _key_moment(index: int, event: InteractionEvent) -> str | None:
    """キーモーメント1行を生成する。表示できる情報がなければ None。"""
    if event.kind == InteractionKind.CLICK and event.element:
        return f'{index}. Clicked "{event.element}"'
    if event.kind == InteractionKind.TYPE and event.element:
        return f'{index}. Entered data in "{event.element}"'
    if event.kind == InteractionKind.NAVIGATE and event.url:
        return f"{index}. Navigated to {_url_path(event.url)}"
    return None


def _engagement_line(total: int) -> str:
    if total > 10:
        return f"🔥 {total} total actions in this comprehensive walkthrough!"
    if total > 5:
        return f"💡 Quick {total}-step demo showing the essentials!"
    return f"⚡ Simple {total}-step process - easy to follow!"


def generate_summary(
    events: Iterable[InteractionEvent],
    description: str,
    start_url: str,
) -> str:
    """操作ログから要約文を生成する。

    Args:
        events: 発生順の操作イベント
        description: デモの説明文（タイトル行に引用）
        start_url: 開始 URL

    Returns:
        複数行の要約文。イベントが無い場合は FALLBACK_SUMMARY
    """
    events = list(events)
    if not events:
        return FALLBACK_SUMMARY

    navigations = sum(1 for e in events if e.kind == InteractionKind.NAVIGATE)
    clicks = sum(1 for e in events if e.kind == InteractionKind.CLICK)
    types = sum(1 for e in events if e.kind == InteractionKind.TYPE)

    lines = [f'🎬 Just recorded a demo: "{description}"', ""]
    lines.append(f"📍 Started at: {start_url}")

    if navigations > 1:
        lines.append(f"🔄 Navigated through {navigations} pages")
    if clicks > 0:
        lines.append(f"🖱️ {clicks} strategic clicks")
    if types > 0:
        lines.append(f"⌨️ Filled {types} form fields")

    lines.extend(["", "✨ Key moments:"])
    for idx, event in enumerate(events[:KEY_MOMENT_COUNT], start=1):
        moment = _key_moment(idx, event)
        if moment is not None:
            lines.append(moment)

    lines.extend(["", _engagement_line(navigations + clicks + types)])
    lines.extend(["", _HASHTAGS, "", _CALL_TO_ACTION])
    return "\n".join(lines)
