"""
demorec MCP Server CLI エントリポイント

python -m demorec.mcp で MCP サーバーを stdio で起動する。
CLI 引数と環境変数でサーバー設定を制御できる。

使用例:
  python -m demorec.mcp                          # デフォルト設定で起動
  python -m demorec.mcp --headless               # ヘッドレスモード
  python -m demorec.mcp --browser firefox        # Firefox で録画
  python -m demorec.mcp --viewport 1920x1080     # 動画サイズ指定

環境変数:
  DEMOREC_HEADED=false                           # ヘッドレスモード
  DEMOREC_VIDEOS_DIR=output                      # 動画ディレクトリ変更
"""

from __future__ import annotations

import logging
import sys

from .config import apply_cli_args, build_cli_parser, load_config_from_env
from .server import create_server

# stdout は MCP トランスポートが使用するため、ログは stderr に出力する
logging.basicConfig(
    level=logging.INFO,
    stream=sys.stderr,
    format="%(asctime)s %(name)s %(levelname)s - %(message)s",
)

# 環境変数 → CLI 引数の順で設定を構築
_config = load_config_from_env()
_parser = build_cli_parser()
_args = _parser.parse_args()
_config = apply_cli_args(_config, _args)

# サーバー生成・起動
server = create_server(config=_config)
server.run()
