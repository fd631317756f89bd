"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- FheService：佔位用的「加密」編碼
- NamingService：紀錄 ID 生成
- PairingService：參與者配對與相容度分數
- StatsService：統計數字
- SearchService：搜尋過濾
"""
