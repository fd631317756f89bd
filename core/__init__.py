"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- Contract：key/value 合約介面與 SQLAlchemy 實作
- RecordStore：把合約 bytes 轉換成 Participant / MatchResult 集合
- AppState：畫面狀態（store + reducer）
- MatchmakingManager：join / verify / run matching 等動作
"""
