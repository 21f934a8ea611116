"""
扩展点 - 外部协作方按名称注册回调，对管线中的值做后处理
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Tuple

QUERY_SPEC_HOOK = 'query_spec'
PRICE_RANGE_HOOK = 'price_range'


class HookRegistry:
    """Named filter chains, run in priority then registration order."""

    def __init__(self):
        self._callbacks: Dict[str, List[Tuple[int, int, Callable[..., Any]]]] = defaultdict(list)
        self._counter = 0

    def add_filter(self, name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._counter += 1
        self._callbacks[name].append((priority, self._counter, callback))
        self._callbacks[name].sort(key=lambda item: (item[0], item[1]))

    def remove_filter(self, name: str, callback: Callable[..., Any]) -> bool:
        before = len(self._callbacks.get(name, []))
        self._callbacks[name] = [item for item in self._callbacks.get(name, []) if item[2] is not callback]
        return len(self._callbacks[name]) != before

    def has_filters(self, name: str) -> bool:
        return bool(self._callbacks.get(name))

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """Pass value through every callback registered for name; identity if none."""
        for _, _, callback in list(self._callbacks.get(name, [])):
            value = callback(value, *args)
        return value
