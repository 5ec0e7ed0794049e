"""
班級服務：班級標籤的範圍與推進順序

拍賣一次只處理一個班級，該班級的學生全部分配完才往下一個班級推進。
班級標籤是 "1".."9"（範圍由 Settings.min_class / max_class 決定）。
"""
from typing import Iterable, List, Optional

from database import get_settings
from models import Candidate


def class_labels() -> List[str]:
    """
    依序列出所有合法的班級標籤

    範例：
        class_labels() -> ["1", "2", ..., "9"]
    """
    settings = get_settings()
    return [str(n) for n in range(settings.min_class, settings.max_class + 1)]


def is_valid_class_label(label: str) -> bool:
    """
    檢查班級標籤是否合法

    範例：
        is_valid_class_label("3") -> True
        is_valid_class_label("0") -> False
        is_valid_class_label("A") -> False
    """
    return label in class_labels()


def unassigned_in_class(candidates: Iterable[Candidate], label: str) -> List[Candidate]:
    return [c for c in candidates if not c.assigned and c.class_label == label]


def lowest_class_label(candidates: Iterable[Candidate]) -> str:
    """
    名單中最小的班級標籤；名單為空時回傳範圍下限
    """
    present = {c.class_label for c in candidates}
    for label in class_labels():
        if label in present:
            return label
    return class_labels()[0]


def next_class_with_candidates(candidates: List[Candidate], current: str) -> Optional[str]:
    """
    從 current+1 往上找第一個還有未分配學生的班級

    參數：
        candidates: 全部學生
        current: 目前班級

    返回：
        下一個班級標籤；沒有的話回傳 None（拍賣應結束）
    """
    labels = class_labels()
    start = labels.index(current) + 1 if current in labels else len(labels)

    for label in labels[start:]:
        if unassigned_in_class(candidates, label):
            return label
    return None
