"""
CSV 匯入服務：解析學生名單

格式（無標題列）：
    Name, AdmissionNumber, Class[, ImageLink]

純解析邏輯，不寫入狀態（由 RosterManager 負責）
"""
import csv
import io
from dataclasses import dataclass, field
from typing import List, Set

from models import Candidate
from services.class_service import is_valid_class_label


@dataclass
class ImportReport:
    processed: int = 0
    added: List[Candidate] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def parse_candidate_rows(text: str, existing_admission_numbers: Set[str]) -> ImportReport:
    """
    解析 CSV 文字為學生清單

    規則：
    - 空白列略過（不計入 processed）
    - 少於 3 欄、必要欄位空白、班級不在 1-9、學號重複的列會記錄錯誤並略過
    - 學號重複包含與現有名單、與同一份檔案前面列的重複

    參數：
        text: CSV 文字
        existing_admission_numbers: 現有學生的學號

    返回：
        ImportReport（processed、added、errors）

    範例：
        "Amy,A001,1\\nBob,A002,2,https://img/bob.png"
        -> added=[Amy(1), Bob(2)], errors=[]
    """
    report = ImportReport()
    seen = set(existing_admission_numbers)

    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    report.processed = len(rows)

    for index, row in enumerate(rows, start=1):
        if len(row) < 3:
            report.errors.append(f"Row {index}: Insufficient columns (expected at least 3)")
            continue

        name, admission_number, class_label = (cell.strip() for cell in row[:3])
        image = row[3].strip() if len(row) > 3 and row[3].strip() else None

        if not name or not admission_number or not class_label:
            report.errors.append(
                f"Row {index}: Missing required fields (Name, Admission Number, Class)"
            )
            continue

        if not is_valid_class_label(class_label):
            report.errors.append(f'Row {index}: Invalid class "{class_label}" (must be 1–9)')
            continue

        if admission_number in seen:
            report.errors.append(
                f'Row {index}: Duplicate admission number "{admission_number}" for "{name}"'
            )
            continue

        seen.add(admission_number)
        report.added.append(Candidate(
            name=name,
            class_label=class_label,
            admission_number=admission_number,
            image=image
        ))

    return report
