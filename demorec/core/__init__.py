"""
demorec コアパッケージ

MCP サーバーに依存しない共通処理を提供する。

主な構成:
  - artifacts: 動画ファイルの命名・配置・探索
  - waits: 操作後の安定待機
"""
