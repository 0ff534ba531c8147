#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
键名编解码模块

模块概述：
    Airtable 接口的请求体和响应体使用 camelCase 键名，而本地代码统一使用
    snake_case。此模块负责在两种命名风格之间递归转换，并完成请求体的
    JSON 序列化。

转换规则：
    1. 映射（dict）的每个键都会被转换，值递归处理
    2. 序列（list/tuple）逐元素递归处理
    3. 其他值原样返回
    4. 键名为 "fields" 时，其值原样复制，不做任何转换
       （字段名由用户定义，例如 "First Name"、"created_at"，不能被改写）
    5. 编码时跳过值为 None 的键（fields 内部除外，None 在那里表示清空字段）

使用示例：
    >>> encode({"filter_by_formula": "{ID}=1", "page_size": None})
    '{"filterByFormula": "{ID}=1"}'
    >>> decode({"createdTime": "2024-01-01T00:00:00.000Z", "fields": {"Full_Name": "A"}})
    {'created_time': '2024-01-01T00:00:00.000Z', 'fields': {'Full_Name': 'A'}}

作者: XTA Team
"""

import re
import json
from typing import Any, Callable

# 不参与键名转换的结构键
VERBATIM_KEY = "fields"

_UPPER_PATTERN = re.compile(r"([A-Z])")
_SNAKE_PATTERN = re.compile(r"_(.)")


def to_snake(name: str) -> str:
    """createdTime -> created_time"""
    return _UPPER_PATTERN.sub(r"_\1", name).lower()


def from_snake(name: str) -> str:
    """created_time -> createdTime"""
    return _SNAKE_PATTERN.sub(lambda m: m.group(1).upper(), name)


def transform_keys(value: Any, key_func: Callable[[str], str], drop_none: bool = False) -> Any:
    """
    递归转换键名

    Args:
        value: 待转换的数据
        key_func: 键名转换函数
        drop_none: 是否丢弃值为 None 的键

    Returns:
        转换后的新对象，输入不会被修改
    """
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if drop_none and item is None:
                continue
            key = str(key)
            if key == VERBATIM_KEY:
                result[key_func(key)] = item
            else:
                result[key_func(key)] = transform_keys(item, key_func, drop_none)
        return result
    if isinstance(value, (list, tuple)):
        return [transform_keys(item, key_func, drop_none) for item in value]
    return value


def encode(value: Any) -> str:
    """将本地数据转换为接口请求体（JSON 文本）"""
    return json.dumps(transform_keys(value, from_snake, drop_none=True), ensure_ascii=False)


def decode(value: Any) -> Any:
    """将已解析的接口响应转换为本地命名风格"""
    return transform_keys(value, to_snake)
