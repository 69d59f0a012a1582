from __future__ import annotations

from typing import Any, Callable, Dict

CommandMap = Dict[str, Callable[..., Any]]
