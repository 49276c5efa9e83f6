"""
VideoArtifacts テスト — 動画ファイル名の生成と動画パス確定の単体テスト
"""

from __future__ import annotations

import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conftest import make_video
from demorec.core.artifacts import (
    MAX_NAME_LENGTH,
    VideoArtifacts,
    build_video_name,
    find_latest_video,
    format_timestamp,
    list_videos,
    sanitize_description,
)
from demorec.errors import ArtifactResolutionError

FIXED_TS = datetime(2026, 10, 17, 18, 42, 0, 123000, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# ファイル名生成のテスト
# ---------------------------------------------------------------------------

class TestSanitizeDescription:
    """sanitize_description() のテスト。"""

    def test_replaces_each_unsafe_char(self):
        assert sanitize_description("Login flow: v2/beta") == "Login_flow__v2_beta"

    def test_keeps_safe_chars(self):
        assert sanitize_description("demo-1_final.v2") == "demo-1_final.v2"

    def test_truncates_to_fifty(self):
        assert sanitize_description("x" * 80) == "x" * MAX_NAME_LENGTH

    @given(st.text(max_size=200))
    def test_sanitization_law(self, text):
        """結果は安全な文字のみで構成され、50 文字以下であること。"""
        result = sanitize_description(text)
        assert re.fullmatch(r"[A-Za-z0-9_.-]*", result)
        assert len(result) == min(len(text), MAX_NAME_LENGTH)


class TestVideoName:
    """format_timestamp() / build_video_name() のテスト。"""

    def test_timestamp_format(self):
        assert format_timestamp(FIXED_TS) == "2026-10-17T18-42-00-123Z"

    def test_timestamp_converted_to_utc(self):
        jst = timezone(timedelta(hours=9))
        local = datetime(2026, 10, 18, 3, 42, 0, 123000, tzinfo=jst)
        assert format_timestamp(local) == "2026-10-17T18-42-00-123Z"

    def test_video_name(self):
        assert build_video_name("Login flow", FIXED_TS) == "Login_flow_2026-10-17T18-42-00-123Z.webm"

    def test_video_name_defaults_to_now(self):
        name = build_video_name("demo")
        assert re.fullmatch(r"demo_\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{3}Z\.webm", name)


# ---------------------------------------------------------------------------
# 動画一覧のテスト
# ---------------------------------------------------------------------------

def _touch(path: Path, mtime: float) -> Path:
    path.write_bytes(b"webm")
    os.utime(path, (mtime, mtime))
    return path


class TestListVideos:
    """list_videos() / find_latest_video() のテスト。"""

    def test_missing_dir(self, tmp_path: Path):
        assert list_videos(tmp_path / "nope") == []
        assert find_latest_video(tmp_path / "nope") is None

    def test_newest_first(self, tmp_path: Path):
        """更新時刻の新しい順に並ぶこと（ファイル名順ではない）。"""
        old = _touch(tmp_path / "zzz.webm", 1_000_000)
        new = _touch(tmp_path / "aaa.webm", 2_000_000)
        (tmp_path / "notes.yaml").write_text("x")

        assert list_videos(tmp_path) == [new, old]
        assert find_latest_video(tmp_path) == new

    def test_same_mtime_uses_name(self, tmp_path: Path):
        first = _touch(tmp_path / "demo_2026-01-01.webm", 1_000_000)
        second = _touch(tmp_path / "demo_2026-01-02.webm", 1_000_000)
        assert list_videos(tmp_path) == [second, first]


# ---------------------------------------------------------------------------
# VideoArtifacts のテスト
# ---------------------------------------------------------------------------

class TestVideoArtifacts:
    """VideoArtifacts のテスト。"""

    def test_begin_creates_dir(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path / "videos")
        path = artifacts.begin("Login flow", FIXED_TS)

        assert artifacts.videos_dir.is_dir()
        assert path == artifacts.videos_dir / "Login_flow_2026-10-17T18-42-00-123Z.webm"
        assert artifacts.planned_path == path

    def test_reset(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        artifacts.begin("demo", FIXED_TS)
        artifacts.reset()
        assert artifacts.planned_path is None

    def test_log_path_for(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        assert artifacts.log_path_for(tmp_path / "a.webm") == tmp_path / "a.yaml"

    @pytest.mark.asyncio
    async def test_finalize_saves_under_planned_name(self, tmp_path: Path):
        """Playwright の動画を決定済みファイル名で保存し、一時ファイルを削除すること。"""
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        planned = artifacts.begin("demo", FIXED_TS)
        video = make_video(str(artifacts.videos_dir / "9b1c2d.webm"))

        result = await artifacts.finalize_video(video)

        assert result == planned
        video.save_as.assert_awaited_once_with(str(planned))
        video.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_finalize_without_plan_returns_source(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        source = artifacts.videos_dir / "9b1c2d.webm"
        video = make_video(str(source))

        assert await artifacts.finalize_video(video) == source
        video.save_as.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_failure_is_not_fatal(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        planned = artifacts.begin("demo", FIXED_TS)
        video = make_video(str(artifacts.videos_dir / "9b1c2d.webm"))
        video.delete.side_effect = OSError("busy")

        assert await artifacts.finalize_video(video) == planned

    @pytest.mark.asyncio
    async def test_finalize_falls_back_to_latest(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        _touch(tmp_path / "old.webm", 1_000_000)
        latest = _touch(tmp_path / "new.webm", 2_000_000)

        assert await artifacts.finalize_video(None) == latest.resolve()

    @pytest.mark.asyncio
    async def test_finalize_without_any_video(self, tmp_path: Path):
        artifacts = VideoArtifacts(videos_dir=tmp_path)
        with pytest.raises(ArtifactResolutionError) as exc_info:
            await artifacts.finalize_video(None)
        assert exc_info.value.kind == "ArtifactResolutionFailure"
