"""
MCP サーバー設定 — 環境変数・CLI 引数からの設定読み込み

環境変数または CLI 引数でデモ録画サーバーの動作を制御する。
CLI 引数 > 環境変数 > デフォルト値 の優先順位で適用される。

環境変数一覧:
  DEMOREC_HEADED          : ブラウザ表示モード（true/false, デフォルト: true）
  DEMOREC_VIDEOS_DIR      : 動画保存ディレクトリ（デフォルト: videos）
  DEMOREC_BROWSER         : デフォルトのブラウザ（chromium/firefox/webkit, デフォルト: chromium）
  DEMOREC_VIEWPORT_WIDTH  : ビューポート幅（デフォルト: 1280）
  DEMOREC_VIEWPORT_HEIGHT : ビューポート高さ（デフォルト: 720）
  DEMOREC_TRAIL_STEPS     : カーソル軌跡の補間点数（デフォルト: 20）
  DEMOREC_TRAIL_DELAY_MS  : 補間点ごとの待機時間（デフォルト: 16）
  DEMOREC_NAV_TIMEOUT_MS  : ページ遷移のタイムアウト（デフォルト: 30000）
  DEMOREC_SAVE_LOG        : 停止時に操作ログ YAML を保存するか（デフォルト: true）
"""

from __future__ import annotations

import os
import logging
from dataclasses import dataclass
from typing import Any, Literal

logger = logging.getLogger(__name__)

BrowserType = Literal["chromium", "firefox", "webkit"]
BROWSER_TYPES: tuple[str, ...] = ("chromium", "firefox", "webkit")

# ---------------------------------------------------------------------------
# 環境変数キー定数
# ---------------------------------------------------------------------------

_ENV_HEADED = "DEMOREC_HEADED"
_ENV_VIDEOS_DIR = "DEMOREC_VIDEOS_DIR"
_ENV_BROWSER = "DEMOREC_BROWSER"
_ENV_VIEWPORT_WIDTH = "DEMOREC_VIEWPORT_WIDTH"
_ENV_VIEWPORT_HEIGHT = "DEMOREC_VIEWPORT_HEIGHT"
_ENV_TRAIL_STEPS = "DEMOREC_TRAIL_STEPS"
_ENV_TRAIL_DELAY_MS = "DEMOREC_TRAIL_DELAY_MS"
_ENV_NAV_TIMEOUT_MS = "DEMOREC_NAV_TIMEOUT_MS"
_ENV_SAVE_LOG = "DEMOREC_SAVE_LOG"

# 整数値として読み込む環境変数と対応フィールド
_INT_ENV_FIELDS = {
    _ENV_VIEWPORT_WIDTH: "viewport_width",
    _ENV_VIEWPORT_HEIGHT: "viewport_height",
    _ENV_TRAIL_STEPS: "trail_steps",
    _ENV_TRAIL_DELAY_MS: "trail_step_delay_ms",
    _ENV_NAV_TIMEOUT_MS: "navigation_timeout_ms",
}


# ---------------------------------------------------------------------------
# 設定データクラス
# ---------------------------------------------------------------------------

@dataclass
class ServerConfig:
    """デモ録画サーバーの実行時設定。

    Attributes:
        headed: ブラウザ表示モード（True=表示, False=ヘッドレス）
        videos_dir: 動画保存ディレクトリ
        browser_type: start で省略された場合のブラウザ
        viewport_width: ビューポート幅（動画サイズも同じ）
        viewport_height: ビューポート高さ（動画サイズも同じ）
        trail_steps: カーソル軌跡の補間点数
        trail_step_delay_ms: 補間点ごとの待機時間
        click_settle_ms: click 後の待機時間
        type_settle_ms: type 後の待機時間
        navigation_timeout_ms: ページ遷移のタイムアウト
        element_timeout_ms: 要素解決のタイムアウト
        save_log: 停止時に操作ログ YAML を保存するか
    """

    headed: bool = True
    videos_dir: str = "videos"
    browser_type: BrowserType = "chromium"
    viewport_width: int = 1280
    viewport_height: int = 720
    trail_steps: int = 20
    trail_step_delay_ms: int = 16
    click_settle_ms: int = 500
    type_settle_ms: int = 300
    navigation_timeout_ms: int = 30000
    element_timeout_ms: int = 5000
    save_log: bool = True


# ---------------------------------------------------------------------------
# 環境変数からの読み込み
# ---------------------------------------------------------------------------

def _parse_bool(value: str) -> bool:
    """文字列を bool に変換する。

    Args:
        value: "true", "1", "yes" → True、それ以外 → False

    Returns:
        変換結果
    """
    return value.lower() in ("true", "1", "yes")


def load_config_from_env() -> ServerConfig:
    """環境変数から ServerConfig を生成する。

    設定されていない環境変数はデフォルト値を使用する。

    Returns:
        環境変数から読み込んだ設定
    """
    config = ServerConfig()

    if _ENV_HEADED in os.environ:
        config.headed = _parse_bool(os.environ[_ENV_HEADED])

    if _ENV_VIDEOS_DIR in os.environ:
        config.videos_dir = os.environ[_ENV_VIDEOS_DIR]

    if _ENV_BROWSER in os.environ:
        val = os.environ[_ENV_BROWSER]
        if val in BROWSER_TYPES:
            config.browser_type = val  # type: ignore[assignment]
        else:
            logger.warning("%s の値が不正です: %s", _ENV_BROWSER, val)

    for env_key, attr in _INT_ENV_FIELDS.items():
        if env_key not in os.environ:
            continue
        try:
            setattr(config, attr, int(os.environ[env_key]))
        except ValueError:
            logger.warning("%s の値が不正です: %s", env_key, os.environ[env_key])

    if _ENV_SAVE_LOG in os.environ:
        config.save_log = _parse_bool(os.environ[_ENV_SAVE_LOG])

    logger.info("設定を読み込みました: %s", config)
    return config


def build_cli_parser():
    """CLI 引数パーサーを構築する。

    Returns:
        argparse.ArgumentParser インスタンス
    """
    import argparse

    parser = argparse.ArgumentParser(
        description="demorec MCP Server - narrated browser demo recording",
    )
    parser.add_argument(
        "--headless", action="store_true", default=None,
        help="Run browser in headless mode (default: headed)",
    )
    parser.add_argument(
        "--headed", action="store_true", default=None,
        help="Run browser in headed mode (default)",
    )
    parser.add_argument(
        "--videos-dir", type=str, default=None,
        help="Directory for recorded videos (default: videos)",
    )
    parser.add_argument(
        "--browser", type=str, default=None,
        choices=list(BROWSER_TYPES),
        help="Default browser engine (default: chromium)",
    )
    parser.add_argument(
        "--viewport", type=str, default=None,
        help="Viewport and video size as WIDTHxHEIGHT (e.g. 1920x1080)",
    )
    parser.add_argument(
        "--trail-steps", type=int, default=None,
        help="Number of interpolated cursor trail points (default: 20)",
    )
    parser.add_argument(
        "--no-save-log", action="store_true", default=None,
        help="Do not write the interaction log YAML next to the video",
    )
    return parser


def apply_cli_args(config: ServerConfig, args: Any) -> ServerConfig:
    """CLI 引数を ServerConfig に適用する。

    CLI 引数が指定されている場合のみ上書きする。

    Args:
        config: ベースとなる設定（環境変数から読み込み済み）
        args: argparse の解析結果（または同じ属性を持つオブジェクト）

    Returns:
        CLI 引数が適用された設定
    """
    # headed / headless
    if getattr(args, "headless", None):
        config.headed = False
    elif getattr(args, "headed", None):
        config.headed = True

    videos_dir = getattr(args, "videos_dir", None)
    if videos_dir is not None:
        config.videos_dir = str(videos_dir)

    browser = getattr(args, "browser", None)
    if browser is not None:
        config.browser_type = browser

    trail_steps = getattr(args, "trail_steps", None)
    if trail_steps is not None:
        config.trail_steps = trail_steps

    if getattr(args, "no_save_log", None):
        config.save_log = False

    viewport_str = getattr(args, "viewport", None)
    if viewport_str is not None:
        try:
            w, h = str(viewport_str).split("x")
            config.viewport_width = int(w)
            config.viewport_height = int(h)
        except (ValueError, AttributeError):
            logger.warning("--viewport の形式が不正です: %s (WIDTHxHEIGHT)", viewport_str)

    return config
