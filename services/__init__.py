"""
服務層

這個 package 包含純計算邏輯，不負責狀態轉換：
- ClassService：班級標籤與推進順序
- AuctionPhaseService：拍賣子階段推導
- TimerService：剩餘時間計算
- TurnOrderService：順序解析與驗證
- ResultsService：結果投影與 CSV 匯出
- HistoryService：隊伍挑選歷史
- CsvImportService：名單匯入解析
"""
