"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- AuctionEngine：拍賣狀態機，集中管理所有狀態轉換
- RosterManager：學生與隊伍名單的生命週期
- StateStore / ChangeNotifier：版本化共享狀態與變更通知
- TurnTimer：回合計時器
- Locks：並發控制工具
"""
