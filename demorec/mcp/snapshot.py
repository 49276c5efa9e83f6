"""
Snapshot — 操作後に返すページ状態の取得・整形

Playwright の aria_snapshot() が返す YAML 形式のアクセシビリティツリーから
インタラクティブ要素を抽出し、URL・タイトルと合わせて AI 向けテキストに整形する。
ARIA スナップショットが取得できない場合は DOM から主要要素を抽出する。

主な機能:
  - ARIA スナップショット YAML の解析
  - インタラクティブ要素ごとの推奨セレクタ生成
  - DOM フォールバック（button / a / input / textarea / select の先頭 10 件）
  - PageSnapshot の文字列化
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# インタラクティブ要素として抽出するロール一覧
# ---------------------------------------------------------------------------

_INTERACTIVE_ROLES = frozenset({
    "button", "link", "textbox", "checkbox", "radio",
    "combobox", "listbox", "menuitem", "option", "searchbox",
    "slider", "spinbutton", "switch", "tab", "treeitem",
})

# DOM フォールバックで抽出する要素数
_FALLBACK_LIMIT = 10

_FALLBACK_SCRIPT = """
(limit) => {
  const interactable = Array.from(
    document.querySelectorAll('button, a, input, textarea, select')
  );
  return interactable.slice(0, limit).map(el => ({
    tag: el.tagName.toLowerCase(),
    text: (el.textContent || '').trim(),
    type: el.type || '',
    placeholder: el.placeholder || '',
    href: el.href || '',
  }));
}
"""

PAGE_UNAVAILABLE = "Error: Page is not available or closed."


# ---------------------------------------------------------------------------
# SnapshotElement データクラス
# ---------------------------------------------------------------------------

@dataclass
class SnapshotElement:
    """アクセシビリティスナップショットから抽出された要素。

    Attributes:
        ref: 一覧内の通し番号
        role: ARIA ロール（button, textbox, link 等）
        name: アクセシブルネーム
        level: ツリー内のネストレベル
        attributes: 追加属性（checked, disabled 等）
    """

    ref: str
    role: str
    name: str = ""
    level: int = 0
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def selector(self) -> str:
        """この要素を指す Playwright の role セレクタを返す。"""
        if self.name:
            escaped = self.name.replace('"', '\\"')
            return f'role={self.role}[name="{escaped}"]'
        return f"role={self.role}"

    def display(self) -> str:
        """AI 向けの表示用文字列を生成する。

        Returns:
            "[ref] role \"name\" [attr=val] → selector" 形式の文字列
        """
        parts = [f"[{self.ref}]", self.role]
        if self.name:
            parts.append(f'"{self.name}"')
        for key, val in self.attributes.items():
            parts.append(f"[{key}={val}]")
        parts.append(f"→ {self.selector}")
        return " ".join(parts)


# ---------------------------------------------------------------------------
# ARIA スナップショット行の解析用正規表現
# ---------------------------------------------------------------------------

# "- role \"name\" [attr=val]" 形式の行を解析
_LINE_PATTERN = re.compile(
    r'^(\s*)-\s+'           # インデント + リストマーカー
    r'(\w+)'                # ロール名
    r'(?:\s+"([^"]*)")?'    # オプショナルな名前（ダブルクォート内）
    r'((?:\s+\[\w+(?:=\w+)?\])*)'  # オプショナルな属性群
    r'\s*:?.*$'             # 末尾（コロン以降のテキストは無視）
)

# 属性 [key=value] / [key] の解析
_ATTR_PATTERN = re.compile(r'\[(\w+)(?:=(\w+))?\]')


class SnapshotParser:
    """ARIA スナップショットを解析し、インタラクティブ要素を抽出する。"""

    def parse(self, aria_yaml: str) -> list[SnapshotElement]:
        """ARIA スナップショット YAML を解析し、要素リストを返す。

        Args:
            aria_yaml: Playwright aria_snapshot() の出力文字列

        Returns:
            通し番号付きの SnapshotElement リスト
        """
        if not aria_yaml or not aria_yaml.strip():
            return []

        elements: list[SnapshotElement] = []
        for line in aria_yaml.splitlines():
            match = _LINE_PATTERN.match(line)
            if not match:
                continue

            role = match.group(2)
            if role not in _INTERACTIVE_ROLES:
                continue

            attributes: dict[str, str] = {}
            for attr_match in _ATTR_PATTERN.finditer(match.group(4) or ""):
                attributes[attr_match.group(1)] = attr_match.group(2) or "true"

            elements.append(SnapshotElement(
                ref=str(len(elements) + 1),
                role=role,
                name=match.group(3) or "",
                level=len(match.group(1) or "") // 2,
                attributes=attributes,
            ))

        return elements


def format_elements(elements: list[SnapshotElement]) -> str:
    """要素リストを AI 向けの複数行文字列に整形する。"""
    if not elements:
        return "(no interactive elements found)"
    return "\n".join(elem.display() for elem in elements)


# ---------------------------------------------------------------------------
# PageSnapshot
# ---------------------------------------------------------------------------

@dataclass
class PageSnapshot:
    """操作後のページ状態。

    Attributes:
        url: 現在の URL
        title: ページタイトル
        body: 要素の説明（ARIA 要素一覧または DOM フォールバックの JSON）
        source: body の取得元（"aria" / "dom"）
    """

    url: str
    title: str
    body: str
    source: str = "aria"

    def render(self) -> str:
        """呼び出し元に返すテキストブロックを生成する。"""
        fence = "yaml" if self.source == "aria" else "json"
        return (
            f"- Page URL: {self.url}\n"
            f"- Page Title: {self.title}\n"
            f"- Page Snapshot:\n"
            f"```{fence}\n{self.body}\n```"
        )


async def capture_snapshot(page: Page, parser: SnapshotParser | None = None) -> PageSnapshot:
    """現在のページの PageSnapshot を取得する。

    Args:
        page: Playwright の Page オブジェクト
        parser: ARIA スナップショットのパーサー（省略時は新規生成）

    Returns:
        取得した PageSnapshot
    """
    parser = parser or SnapshotParser()
    url = page.url
    title = await page.title()

    try:
        aria_yaml = await page.locator("body").aria_snapshot()
        body = format_elements(parser.parse(aria_yaml))
        return PageSnapshot(url=url, title=title, body=body, source="aria")
    except Exception as exc:
        logger.debug("ARIA スナップショットの取得に失敗しました: %s", exc)

    elements = await page.evaluate(_FALLBACK_SCRIPT, _FALLBACK_LIMIT)
    body = json.dumps(elements, ensure_ascii=False, indent=2)
    return PageSnapshot(url=url, title=title, body=body, source="dom")


async def render_page_state(page: Page | None, parser: SnapshotParser | None = None) -> str:
    """ページ状態をテキストで返す。取得に失敗した場合もエラー文を返す。"""
    if page is None or page.is_closed():
        return PAGE_UNAVAILABLE
    try:
        snapshot = await capture_snapshot(page, parser)
    except Exception as exc:
        logger.warning("スナップショットの取得に失敗しました: %s", exc)
        return f"Error taking snapshot: {exc}"
    return snapshot.render()
