#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
记录数据模型
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


def parse_created_time(value: Optional[str]) -> Optional[datetime]:
    """解析 ISO-8601 时间，如 2024-01-01T12:00:00.000Z"""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class Record:
    """Airtable 记录：服务端分配的 id、创建时间和字段映射"""

    fields: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_time: Optional[datetime] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Record":
        """从解码后的响应构建记录"""
        return cls(
            fields=data.get("fields") or {},
            id=data.get("id"),
            created_time=parse_created_time(data.get("created_time")),
        )

    @property
    def is_new(self) -> bool:
        return self.id is None

    def to_api_dict(self) -> Dict[str, Any]:
        """请求体中的记录格式，新记录不带 id"""
        data: Dict[str, Any] = {"fields": self.fields}
        if self.id is not None:
            data["id"] = self.id
        return data


@dataclass
class UpsertResult:
    """upsert 结果：全部记录及其中新建/更新的记录 ID"""

    records: List[Record] = field(default_factory=list)
    created_records: List[str] = field(default_factory=list)
    updated_records: List[str] = field(default_factory=list)
