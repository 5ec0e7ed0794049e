"""
Roster Manager：管理學生與隊伍名單

職責：
1. 新增 / 編輯 / 刪除學生（含 CSV 批次匯入）
2. 新增 / 刪除隊伍
3. 拍賣進行中鎖定名單

原則：
- 學號（admission_number）是學生唯一識別，所有寫入路徑都檢查唯一性
- 所有寫入都透過 AuctionEngine.apply，與拍賣操作共用同一把鎖與版本號
- 有挑選紀錄的隊伍不能刪除；名單只經由接受請求產生，可刪除的隊伍名單必定是空的
"""
import logging
from typing import Optional

from core.auction_engine import AuctionEngine
from core.exceptions import (
    CandidateNotFound,
    RosterLocked,
    TeamHasHistory,
    TeamNotFound,
    ValidationError
)
from models import AppState, AuctionStatus, Candidate, Team
from services.class_service import is_valid_class_label
from services.csv_import_service import ImportReport, parse_candidate_rows

logger = logging.getLogger(__name__)


def _ensure_editable(state: AppState, what: str) -> None:
    if state.auction.status == AuctionStatus.IN_PROGRESS:
        raise RosterLocked(f"Cannot modify {what} during auction")


class RosterManager:
    """學生與隊伍名單管理器"""

    def __init__(self, engine: AuctionEngine):
        self.engine = engine

    # ============ 學生 ============

    def add_candidate(
        self,
        name: str,
        admission_number: str,
        class_label: str,
        image: Optional[str] = None
    ) -> Candidate:
        """
        新增學生

        異常：
            RosterLocked: 拍賣進行中
            ValidationError: 欄位空白、班級不在範圍內、學號重複
        """
        name, admission_number, class_label = name.strip(), admission_number.strip(), class_label.strip()
        candidate = Candidate(
            name=name,
            class_label=class_label,
            admission_number=admission_number,
            image=image
        )

        def change(state: AppState) -> None:
            _ensure_editable(state, "candidates")

            if not name or not admission_number or not class_label:
                raise ValidationError("Name, admission number and class are required")
            if not is_valid_class_label(class_label):
                raise ValidationError(f'Invalid class "{class_label}" (must be 1–9)')
            if state.find_candidate(admission_number) is not None:
                raise ValidationError(
                    f"Admission number {admission_number} is already used by another candidate"
                )

            state.candidates.append(candidate)

        self.engine.apply("add_candidate", change)
        logger.info(f"Added candidate {name} ({admission_number}), class {class_label}")
        return candidate

    def edit_candidate(
        self,
        admission_number: str,
        new_admission_number: Optional[str] = None,
        image: Optional[str] = None
    ) -> Candidate:
        """
        編輯學生的學號或照片

        隊伍名單上的副本會一起更新；已完成的 Selection 是歷史紀錄，不修改
        內容沒有變化時不寫入

        異常：
            RosterLocked: 拍賣進行中
            CandidateNotFound: 學生不存在
            ValidationError: 新學號空白或已被使用
        """
        def change(state: AppState) -> bool:
            _ensure_editable(state, "candidates")

            candidate = state.find_candidate(admission_number)
            if candidate is None:
                raise CandidateNotFound(admission_number)
            original = candidate.model_copy()

            if new_admission_number is not None:
                new_number = new_admission_number.strip()
                if not new_number:
                    raise ValidationError("Admission number is required")
                if new_number != admission_number and state.find_candidate(new_number) is not None:
                    raise ValidationError("This admission number is already used by another candidate")
                candidate.admission_number = new_number

            if image is not None:
                candidate.image = image

            if candidate == original:
                return False

            for team in state.teams:
                team.roster = [
                    candidate.model_copy() if member.admission_number == admission_number else member
                    for member in team.roster
                ]
            return True

        state = self.engine.apply("edit_candidate", change)
        return state.find_candidate((new_admission_number or admission_number).strip())

    def delete_candidate(self, admission_number: str) -> AppState:
        """
        刪除學生（同時從隊伍名單移除）

        異常：
            RosterLocked: 拍賣進行中
            CandidateNotFound: 學生不存在
        """
        def change(state: AppState) -> None:
            _ensure_editable(state, "candidates")

            if state.find_candidate(admission_number) is None:
                raise CandidateNotFound(admission_number)

            state.candidates = [
                c for c in state.candidates if c.admission_number != admission_number
            ]
            for team in state.teams:
                team.roster = [m for m in team.roster if m.admission_number != admission_number]

        state = self.engine.apply("delete_candidate", change)
        logger.info(f"Deleted candidate {admission_number}")
        return state

    def import_candidates(self, text: str) -> ImportReport:
        """
        CSV 批次匯入學生

        有效的列在同一次寫入中加入；全部無效時不寫入

        返回：
            ImportReport（processed、added、errors）

        異常：
            RosterLocked: 拍賣進行中
        """
        report = ImportReport()

        def change(state: AppState) -> bool:
            nonlocal report
            _ensure_editable(state, "candidates")

            report = parse_candidate_rows(
                text,
                {c.admission_number for c in state.candidates}
            )
            if not report.added:
                return False

            state.candidates.extend(report.added)
            return True

        self.engine.apply("import_candidates", change)
        logger.info(
            f"CSV import: processed {report.processed} rows, "
            f"added {len(report.added)}, errors {len(report.errors)}"
        )
        return report

    # ============ 隊伍 ============

    def add_team(self, name: str, leader: str, assistant: Optional[str] = None) -> Team:
        """
        新增隊伍

        異常：
            RosterLocked: 拍賣進行中
            ValidationError: 名稱或隊長空白、名稱重複
        """
        name, leader = name.strip(), leader.strip()
        assistant = assistant.strip() if assistant and assistant.strip() else None
        team = Team(name=name, leader=leader, assistant=assistant)

        def change(state: AppState) -> None:
            _ensure_editable(state, "teams")

            if not name or not leader:
                raise ValidationError("Team name and leader are required")
            # 逗號會和文字格式的順序輸入衝突
            if "," in name:
                raise ValidationError("Team name cannot contain commas")
            if state.find_team(name) is not None:
                raise ValidationError(f"Team {name} already exists")

            state.teams.append(team)

        self.engine.apply("add_team", change)
        logger.info(f"Added team {name} (leader {leader})")
        return team

    def delete_team(self, name: str) -> AppState:
        """
        刪除隊伍

        異常：
            RosterLocked: 拍賣進行中
            TeamNotFound: 隊伍不存在
            TeamHasHistory: 本次拍賣紀錄中有這個隊伍的挑選
        """
        def change(state: AppState) -> None:
            _ensure_editable(state, "teams")

            if state.find_team(name) is None:
                raise TeamNotFound(name)

            if any(s.team == name for s in state.auction.selections):
                raise TeamHasHistory(name)

            state.teams = [t for t in state.teams if t.name != name]

        state = self.engine.apply("delete_team", change)
        logger.info(f"Deleted team {name}")
        return state
