"""
ChangeNotifier：通知其他觀察者「共享狀態已更新」

只傳遞「有一次 save 發生了」這件事（附上新版本號），不傳遞狀態內容；
觀察者收到後自行透過 StateStore 重新載入。

保證：
- best-effort、至少一次
- 單一 handler 失敗不影響其他 handler
- 不保證順序（觀察者靠 state_version 比較來收斂）
"""
import logging
import threading
from typing import Callable, List

logger = logging.getLogger(__name__)

SignalHandler = Callable[[int], None]


class ChangeNotifier:
    def __init__(self):
        self._handlers: List[SignalHandler] = []
        self._lock = threading.Lock()

    def on_signal(self, handler: SignalHandler) -> None:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)

    def remove(self, handler: SignalHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def signal(self, state_version: int) -> None:
        """
        通知所有訂閱者

        參數：
            state_version: 剛寫入的版本號
        """
        # 複製一份，避免 handler 在通知期間訂閱或取消訂閱
        with self._lock:
            handlers = list(self._handlers)

        logger.debug(f"Signalling state_version={state_version} to {len(handlers)} observers")

        for handler in handlers:
            try:
                handler(state_version)
            except Exception as e:
                logger.error(f"Change handler {handler!r} failed: {e}", exc_info=True)
