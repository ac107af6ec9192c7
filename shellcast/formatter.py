"""출력 라인에 태그와 타임스탬프를 붙이는 포매터."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Go reference layout tokens (2006-01-02 15:04:05) -> strftime directives.
_GO_LAYOUT_TOKENS = {
    "2006": "%Y",
    "January": "%B",
    "Monday": "%A",
    "Jan": "%b",
    "Mon": "%a",
    "MST": "%Z",
    "PM": "%p",
    "01": "%m",
    "02": "%d",
    "03": "%I",
    "04": "%M",
    "05": "%S",
    "06": "%y",
    "15": "%H",
}
_GO_LAYOUT_PATTERN = re.compile("|".join(_GO_LAYOUT_TOKENS))


def normalize_time_format(value: str) -> str:
    """strftime 포맷으로 변환하고 렌더링 가능 여부를 검증한다.

    ``%`` 가 없는 문자열은 Go 스타일 레이아웃으로 간주한다.
    """

    if not value:
        raise ValueError("timestamp format must not be empty")
    if "%" not in value:
        value = _GO_LAYOUT_PATTERN.sub(lambda match: _GO_LAYOUT_TOKENS[match.group()], value)
    try:
        datetime.now().strftime(value)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp format {value!r}: {exc}") from exc
    return value


@dataclass(frozen=True, slots=True)
class TimestampPolicy:
    """타임스탬프 출력 여부와 포맷."""

    enabled: bool = False
    fmt: str = DEFAULT_TIME_FORMAT

    def render(self, now: Optional[datetime] = None) -> str:
        return (now or datetime.now()).strftime(self.fmt)


def format_line(
    raw: str,
    tag: Optional[str] = None,
    policy: Optional[TimestampPolicy] = None,
    *,
    now: Optional[datetime] = None,
) -> str:
    """``<tag><[timestamp] >raw`` 형태의 표시용 라인을 만든다."""

    prefix = tag or ""
    if policy is not None and policy.enabled:
        return f"{prefix}[{policy.render(now)}] {raw}"
    return f"{prefix}{raw}"


__all__ = ["DEFAULT_TIME_FORMAT", "TimestampPolicy", "format_line", "normalize_time_format"]
