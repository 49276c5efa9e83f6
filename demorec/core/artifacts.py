"""
VideoArtifacts — 録画動画と操作ログの保存先管理

録画セッションごとに1本生成される動画ファイルの命名・配置と、
動画パスを特定できなかった場合のフォールバック探索を担当する。

主な機能:
  - ensure_dir(): 動画ディレクトリの作成
  - build_video_name(): 説明文 + タイムスタンプからの動画ファイル名生成
  - finalize_video(): Playwright の動画を決定済みファイル名で保存
  - find_latest_video(): ディレクトリ内で最も新しい動画の探索
  - log_path_for(): 動画に対応する操作ログ（YAML）のパス
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..errors import ArtifactResolutionError

if TYPE_CHECKING:
    from playwright.async_api import Video

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ファイル名サニタイズ
# ---------------------------------------------------------------------------

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")
"""ファイル名に使用できない文字を検出する正規表現。"""

# 説明文部分の最大長
MAX_NAME_LENGTH = 50

VIDEO_SUFFIX = ".webm"

# 動画パスを特定できなかった場合に返す値
UNKNOWN_VIDEO_PATH = "unknown (video might not have saved correctly)"


def sanitize_description(description: str) -> str:
    """説明文をファイル名に安全な文字列に変換する。

    [A-Za-z0-9_.-] 以外の文字を1文字ずつ "_" に置換し、
    先頭 MAX_NAME_LENGTH 文字に切り詰める。
    """
    return _UNSAFE_CHARS.sub("_", description)[:MAX_NAME_LENGTH]


def format_timestamp(timestamp: datetime) -> str:
    """タイムスタンプを ISO 8601 (UTC, ミリ秒) で整形し、":" と "." を "-" に置換する。

    例: 2026-10-17T18:42:00.123Z → 2026-10-17T18-42-00-123Z
    """
    ts = timestamp.astimezone(timezone.utc)
    iso = ts.strftime("%Y-%m-%dT%H:%M:%S") + f".{ts.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def build_video_name(description: str, timestamp: Optional[datetime] = None) -> str:
    """動画ファイル名 <sanitized-description>_<timestamp>.webm を生成する。

    Args:
        description: デモの説明文
        timestamp: 使用するタイムスタンプ。None の場合は現在時刻

    Returns:
        動画ファイル名
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    return f"{sanitize_description(description)}_{format_timestamp(timestamp)}{VIDEO_SUFFIX}"


# ---------------------------------------------------------------------------
# VideoArtifacts 本体
# ---------------------------------------------------------------------------

@dataclass
class VideoArtifacts:
    """動画ディレクトリの管理クラス。

    Attributes:
        videos_dir: 動画の保存先ディレクトリ
        current_name: 現在のセッションの動画ファイル名（start 時に決定）
    """

    videos_dir: Path = field(default_factory=lambda: Path("videos"))
    current_name: Optional[str] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.videos_dir = Path(self.videos_dir).resolve()

    def ensure_dir(self) -> Path:
        """動画ディレクトリを作成する（既存なら何もしない）。"""
        self.videos_dir.mkdir(parents=True, exist_ok=True)
        return self.videos_dir

    def begin(self, description: str, timestamp: Optional[datetime] = None) -> Path:
        """新しいセッションの動画パスを決定する。

        Returns:
            予定される動画ファイルのパス
        """
        self.ensure_dir()
        self.current_name = build_video_name(description, timestamp)
        return self.videos_dir / self.current_name

    @property
    def planned_path(self) -> Optional[Path]:
        """begin() で決定した動画パスを返す。未決定なら None。"""
        if self.current_name is None:
            return None
        return self.videos_dir / self.current_name

    def reset(self) -> None:
        self.current_name = None

    # ----- 動画の確定 -----

    async def finalize_video(self, video: Optional[Video]) -> Path:
        """録画済み動画の最終パスを確定する。

        ページを閉じた後に呼び出すこと（閉じる前は動画が書き終わっていない）。
        page.video が取得できた場合は決定済みファイル名で保存し直し、
        Playwright が生成した一時ファイルを削除する。
        取得できない場合はディレクトリ内の最新動画を返す。

        Args:
            video: Playwright の Video オブジェクト（None 可）

        Returns:
            動画ファイルのパス

        Raises:
            ArtifactResolutionError: 動画を特定できなかった場合
        """
        if video is not None:
            source = Path(await video.path())
            target = self.planned_path
            if target is None or target == source:
                logger.info("動画を保存しました: %s", source)
                return source
            await video.save_as(str(target))
            try:
                await video.delete()
            except Exception:
                logger.warning("一時動画ファイルの削除に失敗しました: %s", source)
            logger.info("動画を保存しました: %s", target)
            return target

        logger.warning("page.video が取得できないため最新の動画を探索します")
        latest = find_latest_video(self.videos_dir)
        if latest is None:
            raise ArtifactResolutionError(
                f"No recorded video found in {self.videos_dir}"
            )
        return latest

    def log_path_for(self, video_path: Path) -> Path:
        """動画に対応する操作ログ（YAML）のパスを返す。"""
        return Path(video_path).with_suffix(".yaml")

    def list_videos(self) -> list[Path]:
        """ディレクトリ内の動画を新しい順に返す。"""
        return list_videos(self.videos_dir)


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def list_videos(videos_dir: Path) -> list[Path]:
    """動画ファイルを作成時刻の新しい順に返す。

    更新時刻が同じ場合はファイル名（タイムスタンプ付き）の降順で並べる。
    """
    videos_dir = Path(videos_dir)
    if not videos_dir.is_dir():
        return []

    files = [p for p in videos_dir.iterdir() if p.is_file() and p.suffix == VIDEO_SUFFIX]
    files.sort(key=lambda p: (p.stat().st_mtime, p.name), reverse=True)
    return files


def find_latest_video(videos_dir: Path) -> Optional[Path]:
    """ディレクトリ内で最も新しい動画ファイルを返す。無ければ None。"""
    videos = list_videos(videos_dir)
    return videos[0] if videos else None
