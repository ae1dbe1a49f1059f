"""SystemSetting entity - one key/value pair of runtime configuration."""

from typing import Any

from .base import BaseEntity


class SystemSetting(BaseEntity):
    key: str
    value: Any = None
