"""
API 層

每個 router 只負責把 HTTP 請求轉給 core，並把業務異常轉成 HTTP 狀態碼：
- auction：拍賣狀態機操作與短輪詢
- roster：學生與隊伍名單
- results：結果預覽與 CSV 匯出
"""
