#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
数据转换模块
提供 DataFrame 行与 Airtable 记录字段之间的转换功能
"""

import math
import logging
import datetime as dt
from typing import Any, Dict, List, Optional

import pandas as pd

from api.record import Record

RECORD_ID_COLUMN = "record_id"
CREATED_TIME_COLUMN = "created_time"
EXPORT_COLUMNS = (RECORD_ID_COLUMN, CREATED_TIME_COLUMN)


class DataConverter:
    """数据转换器"""

    def __init__(self):
        """初始化数据转换器"""
        self.logger = logging.getLogger("XTA.converter")

    def to_python(self, value: Any) -> Any:
        """
        将单元格值转换为可序列化为 JSON 的 Python 值

        空值（None/NaN/NaT）返回 None，numpy 标量转换为内置类型，
        日期时间转换为 ISO-8601 字符串。
        """
        if value is None or value is pd.NA or value is pd.NaT:
            return None
        if isinstance(value, float) and math.isnan(value):
            return None
        if isinstance(value, pd.Timestamp):
            return value.isoformat()
        if isinstance(value, (dt.datetime, dt.date)):
            return value.isoformat()
        if hasattr(value, "item") and not isinstance(value, (list, dict, str)):
            # numpy 标量
            return self.to_python(value.item())
        return value

    def row_to_fields(self, row: pd.Series) -> Dict[str, Any]:
        """单行转换为字段字典，空值和导出附加的记录 ID/创建时间列不写入"""
        fields = {}
        for column, value in row.items():
            if column in EXPORT_COLUMNS:
                continue
            converted = self.to_python(value)
            if converted is None:
                continue
            if isinstance(converted, str) and not converted.strip():
                continue
            fields[str(column)] = converted
        return fields

    def df_to_fields(self, df: pd.DataFrame) -> List[Dict[str, Any]]:
        """DataFrame 转换为字段字典列表（保持行顺序）"""
        return [self.row_to_fields(row) for _, row in df.iterrows()]

    def index_key(self, value: Any) -> Optional[str]:
        """
        索引值标准化，用于比对数据文件和数据表中的记录

        pandas 会把含空值的整数列读成浮点数（1 -> 1.0），这里统一成 "1"。
        """
        value = self.to_python(value)
        if value is None:
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        key = str(value).strip()
        return key or None

    def build_record_index(self, records: List[Record], index_column: Optional[str]) -> Dict[str, Record]:
        """构建 索引值 -> 记录 的映射，重复索引值保留第一条"""
        index: Dict[str, Record] = {}
        if not index_column:
            return index

        duplicates = 0
        for record in records:
            key = self.index_key(record.fields.get(index_column))
            if key is None:
                continue
            if key in index:
                duplicates += 1
                continue
            index[key] = record

        if duplicates:
            self.logger.warning(f"索引列 '{index_column}' 存在 {duplicates} 个重复值，已保留第一条")
        return index

    def records_to_dataframe(self, records: List[Record]) -> pd.DataFrame:
        """记录列表转换为 DataFrame，前两列为记录 ID 和创建时间"""
        columns: List[str] = []
        seen = set()
        rows = []
        for record in records:
            for name in record.fields:
                if name not in seen:
                    seen.add(name)
                    columns.append(name)
            row = {
                RECORD_ID_COLUMN: record.id,
                CREATED_TIME_COLUMN: record.created_time.isoformat() if record.created_time else None,
            }
            row.update(record.fields)
            rows.append(row)

        return pd.DataFrame(rows, columns=[RECORD_ID_COLUMN, CREATED_TIME_COLUMN] + columns)
