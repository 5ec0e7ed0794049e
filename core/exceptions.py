"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理
"""


class ClassAuctionException(Exception):
    """所有拍賣異常的基類"""
    pass


# ============ 輸入驗證異常 ============

class ValidationError(ClassAuctionException):
    """輸入不足或格式錯誤（開始拍賣、設定順序、新增名單）；不改變任何狀態"""
    pass


# ============ 拍賣規則異常 ============

class AuctionRuleViolation(ClassAuctionException):
    """違反拍賣規則；不改變任何狀態"""
    pass


class NotInProgressError(AuctionRuleViolation):
    """拍賣不在進行中"""
    def __init__(self, message="Auction is not in progress"):
        super().__init__(message)


class TurnError(AuctionRuleViolation):
    """還沒輪到這個隊伍（或尚未設定順序）"""
    pass


class ConflictError(AuctionRuleViolation):
    """操作與目前狀態衝突"""
    pass


class RequestAlreadyPending(ConflictError):
    """已經有一個待審核的請求"""
    def __init__(self, message="There is already a pending request"):
        super().__init__(message)


class AuctionAlreadyRunning(ConflictError):
    """拍賣已經在進行中，不能重新開始"""
    def __init__(self, message="Auction is already in progress"):
        super().__init__(message)


class RosterLocked(ConflictError):
    """拍賣進行中不能新增、編輯或刪除學生與隊伍"""
    pass


class TeamHasHistory(ConflictError):
    """隊伍已有挑選紀錄，開始新拍賣或重置前不能刪除"""
    def __init__(self, name):
        self.name = name
        super().__init__(f"Team {name} has auction history; start a new auction or reset first")



class NotAvailableError(AuctionRuleViolation):
    """學生不存在或已被分配"""
    def __init__(self, admission_number):
        self.admission_number = admission_number
        super().__init__(f"Candidate {admission_number} is not available")


# ============ 查詢異常 ============

class CandidateNotFound(ClassAuctionException):
    """學生不存在"""
    def __init__(self, admission_number):
        self.admission_number = admission_number
        super().__init__(f"Candidate {admission_number} not found")


class TeamNotFound(ClassAuctionException):
    """隊伍不存在"""
    def __init__(self, name):
        self.name = name
        super().__init__(f"Team {name} not found")


# ============ 儲存異常 ============

class StorageError(ClassAuctionException):
    """讀寫共享狀態失敗；呼叫端應提示使用者同步可能已過期"""
    pass
