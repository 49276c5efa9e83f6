"""
Overlay — 録画映像向けのカーソル・操作マーカー表示

ヘッドレス録画やネイティブカーソルが映らない動画でも操作が追えるように、
ページ内に疑似カーソルと軌跡・操作マーカーを描画する。

主な機能:
  - オーバーレイ描画関数のページへの注入（冪等、ページ遷移ごとに再注入）
  - 直前位置から対象要素中心までの軌跡補間と描画
  - click / type 操作マーカーの描画（click は作成順に番号付け）

各オーバーレイ要素は生存時間（TTL）付きで作成され、ページ内のタイマーで
自動的にフェードアウト・削除される。Python 側は削除を待たない。
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import ElementNotFoundError

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 座標とポインタ状態
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    """ビューポート座標（CSS ピクセル）。"""

    x: float
    y: float


# セッション開始時のポインタ位置
ORIGIN = Point(0.0, 0.0)


@dataclass
class PointerState:
    """セッション内で共有されるポインタ状態。

    Attributes:
        position: 最後に移動したポインタ位置
        click_count: これまでに描画した click マーカー数（ページ遷移でリセットしない）
    """

    position: Point = ORIGIN
    click_count: int = 0

    def reset(self) -> None:
        """セッション開始時の状態に戻す。"""
        self.position = ORIGIN
        self.click_count = 0


# ---------------------------------------------------------------------------
# 表示スタイル
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OverlayStyle:
    """オーバーレイ要素の見た目と生存時間。

    Attributes:
        trail_steps: 軌跡の補間点数
        trail_step_delay_ms: 補間点ごとの待機時間
        trail_ttl_ms: 軌跡ドットの生存時間
        click_ttl_ms: click マーカーの生存時間
        type_ttl_ms: type マーカーの生存時間
        pulse_ttl_ms: 操作直前インジケーターの生存時間
        cursor_color: 疑似カーソルの色
        click_color: click マーカーの色
        type_color: type マーカーの色
    """

    trail_steps: int = 20
    trail_step_delay_ms: int = 16
    trail_ttl_ms: int = 600
    click_ttl_ms: int = 10000
    type_ttl_ms: int = 6000
    pulse_ttl_ms: int = 700
    cursor_color: str = "rgba(255,64,64,0.95)"
    click_color: str = "rgba(255,170,0,0.95)"
    type_color: str = "rgba(0,180,255,0.95)"

    def to_js_config(self) -> dict[str, object]:
        return {
            "cursorColor": self.cursor_color,
            "clickColor": self.click_color,
            "typeColor": self.type_color,
        }


# ---------------------------------------------------------------------------
# ページ注入スクリプト
# ---------------------------------------------------------------------------

_INSTALL_SCRIPT_TEMPLATE = """
(() => {
  const stale = [
    document.getElementById('__demorec_overlay_layer'),
    document.getElementById('__demorec_cursor'),
  ];
  if (stale[0] && stale[1]) return false;
  stale.forEach(el => el && el.remove());
  const cfg = __CFG_JSON__;
  const host = document.body || document.documentElement;
  if (!host) return false;

  const layer = document.createElement('div');
  layer.id = '__demorec_overlay_layer';
  layer.style.position = 'fixed';
  layer.style.inset = '0';
  layer.style.pointerEvents = 'none';
  layer.style.zIndex = '2147483646';
  host.appendChild(layer);

  const cursor = document.createElement('div');
  cursor.id = '__demorec_cursor';
  cursor.style.position = 'fixed';
  cursor.style.width = '18px';
  cursor.style.height = '18px';
  cursor.style.marginLeft = '-9px';
  cursor.style.marginTop = '-9px';
  cursor.style.borderRadius = '50%';
  cursor.style.border = `2px solid ${cfg.cursorColor}`;
  cursor.style.background = 'rgba(255,255,255,0.35)';
  cursor.style.pointerEvents = 'none';
  cursor.style.zIndex = '2147483647';
  cursor.style.left = '0px';
  cursor.style.top = '0px';
  host.appendChild(cursor);

  const expire = (el, ttl) => {
    const fade = Math.min(400, ttl);
    setTimeout(() => {
      el.dataset.state = 'fading';
      el.style.opacity = '0';
    }, Math.max(0, ttl - fade));
    setTimeout(() => el.remove(), ttl);
  };

  const spawn = (x, y, size, css) => {
    const el = document.createElement('div');
    el.style.position = 'fixed';
    el.style.left = `${x - size / 2}px`;
    el.style.top = `${y - size / 2}px`;
    el.style.width = `${size}px`;
    el.style.height = `${size}px`;
    el.style.pointerEvents = 'none';
    el.style.transition = 'opacity 400ms linear, transform 400ms ease';
    el.dataset.state = 'active';
    Object.assign(el.style, css);
    layer.appendChild(el);
    return el;
  };

  window.__demorecMoveCursor = (x, y) => {
    cursor.style.left = `${x}px`;
    cursor.style.top = `${y}px`;
  };

  window.__demorecTrail = (x, y, ttl) => {
    const dot = spawn(x, y, 8, {
      borderRadius: '50%',
      background: cfg.cursorColor,
      opacity: '0.6',
    });
    dot.className = '__demorec_trail';
    expire(dot, ttl);
  };

  window.__demorecPulse = (x, y, ttl) => {
    const ring = spawn(x, y, 28, {
      borderRadius: '50%',
      border: `3px solid ${cfg.cursorColor}`,
      transform: 'scale(0.6)',
    });
    ring.className = '__demorec_pulse';
    requestAnimationFrame(() => { ring.style.transform = 'scale(1.6)'; });
    expire(ring, ttl);
  };

  window.__demorecMark = (x, y, kind, label, ttl) => {
    const isClick = kind === 'click';
    const marker = spawn(x, y, isClick ? 26 : 22, {
      borderRadius: isClick ? '50%' : '4px',
      background: isClick ? cfg.clickColor : cfg.typeColor,
      color: '#fff',
      font: 'bold 13px/22px sans-serif',
      textAlign: 'center',
      boxShadow: '0 0 8px rgba(0,0,0,0.35)',
      opacity: '0.9',
    });
    marker.className = `__demorec_marker __demorec_${kind}`;
    marker.textContent = label || (isClick ? '' : '⌨');
    expire(marker, ttl);
  };

  return true;
})()
"""


def build_install_script(style: OverlayStyle) -> str:
    """スタイル設定を埋め込んだ注入スクリプトを生成する。"""
    return _INSTALL_SCRIPT_TEMPLATE.replace(
        "__CFG_JSON__", json.dumps(style.to_js_config(), ensure_ascii=False),
    )


# ---------------------------------------------------------------------------
# 軌跡補間
# ---------------------------------------------------------------------------

def interpolate_trail(start: Point, end: Point, steps: int) -> list[Point]:
    """start から end までを線形補間した中間点列を返す。

    返す点列は start を含まず end を含む（steps 個）。

    Args:
        start: 移動元
        end: 移動先
        steps: 補間点数（1 未満は 1 として扱う）

    Returns:
        補間点のリスト
    """
    steps = max(1, steps)
    points: list[Point] = []
    for i in range(1, steps + 1):
        t = i / steps
        points.append(Point(
            x=start.x + (end.x - start.x) * t,
            y=start.y + (end.y - start.y) * t,
        ))
    return points


# ---------------------------------------------------------------------------
# CursorOverlay 本体
# ---------------------------------------------------------------------------

class CursorOverlay:
    """疑似カーソルの移動と操作マーカーの描画を担当する。

    ログへの記録は行わない（呼び出し側のセッションが担当する）。
    """

    def __init__(self, style: OverlayStyle | None = None) -> None:
        self.style = style or OverlayStyle()
        self._script = build_install_script(self.style)

    async def ensure_installed(self, page: Page) -> None:
        """描画関数をページに注入する。既に注入済みなら何もしない。

        ページ遷移で注入状態は失われるため、遷移後に必ず呼び出す。
        """
        installed = await page.evaluate(self._script)
        if installed:
            logger.debug("オーバーレイを注入しました")

    async def resolve_center(self, page: Page, selector: str, timeout: int = 5000) -> Point:
        """セレクタに一致する要素の中心座標を返す。

        Raises:
            ElementNotFoundError: timeout 内に要素が現れない、または表示されていない場合
        """
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        # bounding_box は要素がアタッチされるまで timeout まで待機する
        locator = page.locator(selector).first
        try:
            box = await locator.bounding_box(timeout=timeout)
        except PlaywrightTimeoutError as exc:
            raise ElementNotFoundError(selector) from exc
        if box is None:
            raise ElementNotFoundError(selector)

        return Point(
            x=box["x"] + box["width"] / 2,
            y=box["y"] + box["height"] / 2,
        )

    async def move_to(
        self,
        page: Page,
        selector: str,
        pointer: PointerState,
        timeout: int = 5000,
    ) -> Point:
        """直前位置から要素中心まで疑似カーソルを移動する。

        補間点ごとに実マウスも移動させ、軌跡ドットを描画する。
        移動完了後に pointer.position を更新する。
        描画（注入・軌跡）の失敗は警告のみとし、実マウスの移動は継続する。

        Args:
            page: Playwright の Page オブジェクト
            selector: 移動先要素のセレクタ
            pointer: セッションのポインタ状態
            timeout: 要素解決のタイムアウト（ミリ秒）

        Returns:
            移動先（要素中心）の座標

        Raises:
            ElementNotFoundError: 要素が見つからない場合
        """
        target = await self.resolve_center(page, selector, timeout=timeout)
        try:
            await self.ensure_installed(page)
        except Exception as exc:
            logger.warning("オーバーレイの注入に失敗しました: %s", exc)

        drawing = True
        delay = self.style.trail_step_delay_ms / 1000.0
        for point in interpolate_trail(pointer.position, target, self.style.trail_steps):
            await page.mouse.move(point.x, point.y)
            if drawing:
                try:
                    await page.evaluate(
                        "([x, y, ttl]) => { window.__demorecMoveCursor?.(x, y);"
                        " window.__demorecTrail?.(x, y, ttl); }",
                        [point.x, point.y, self.style.trail_ttl_ms],
                    )
                except Exception as exc:
                    # 以降の補間点では描画を省略する
                    logger.warning("カーソル軌跡の描画に失敗しました: %s", exc)
                    drawing = False
            if delay > 0:
                await asyncio.sleep(delay)

        pointer.position = target
        return target

    async def pulse(self, page: Page, point: Point) -> None:
        """操作直前のインジケーターを描画する。"""
        await page.evaluate(
            "([x, y, ttl]) => window.__demorecPulse?.(x, y, ttl)",
            [point.x, point.y, self.style.pulse_ttl_ms],
        )

    async def mark_action(
        self,
        page: Page,
        point: Point,
        kind: str,
        pointer: PointerState,
    ) -> str:
        """操作マーカーを描画する。

        click マーカーにはセッション内の作成順番号を付ける。

        Args:
            page: Playwright の Page オブジェクト
            point: マーカー位置
            kind: "click" または "type"
            pointer: セッションのポインタ状態（click 番号を保持）

        Returns:
            マーカーに表示したラベル（type は空文字列）
        """
        if kind == "click":
            pointer.click_count += 1
            label = str(pointer.click_count)
            ttl = self.style.click_ttl_ms
        else:
            label = ""
            ttl = self.style.type_ttl_ms

        await page.evaluate(
            "([x, y, kind, label, ttl]) => window.__demorecMark?.(x, y, kind, label, ttl)",
            [point.x, point.y, kind, label, ttl],
        )
        return label
