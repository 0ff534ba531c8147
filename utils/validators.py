#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
输入验证模块

模块概述：
    此模块提供输入验证功能，用于防止安全漏洞和无效请求，包括：
    - ID 格式验证（base/表/记录 ID 会拼接进请求路径，防止路径遍历）
    - upsert 合并字段验证
    - 文件路径验证（防止任意文件读取）

主要功能：
    1. 验证 Airtable ID 格式
    2. 区分数据表 ID 与数据表名称
    3. 验证 merge_on 字段数量
    4. 验证文件路径安全性

安全考虑：
    - ID 只允许字母、数字、下划线和短横线
    - 数据表名称不做限制，由调用方进行 URL 编码
    - 文件路径检查是否包含路径遍历序列

作者: XTA Team
"""

import re
from pathlib import Path
from typing import List, Optional, Sequence


# ID 格式正则表达式：只允许字母、数字、下划线和短横线
TOKEN_PATTERN = re.compile(r'^[a-zA-Z0-9_-]+$')

# 数据表 ID 形如 tblXXXXXXXXXXXXXX，其余视为数据表名称
TABLE_ID_PATTERN = re.compile(r'^tbl[a-zA-Z0-9]+$')

# upsert 时用于匹配已有记录的字段数量范围
MIN_MERGE_FIELDS = 1
MAX_MERGE_FIELDS = 3


class ValidationError(ValueError):
    """验证错误异常"""
    pass


def validate_token(token: str, token_type: str = "token") -> str:
    """
    验证 ID 格式，防止路径遍历攻击

    Args:
        token: 要验证的值
        token_type: 值的类型名称（用于错误消息）

    Returns:
        str: 验证通过的值

    Raises:
        ValidationError: 当格式无效时

    Examples:
        >>> validate_token("appABC123", "base_id")
        'appABC123'
        >>> validate_token("../../../etc", "base_id")  # 抛出 ValidationError
    """
    # 首先检查类型
    if not isinstance(token, str):
        raise ValidationError(f"无效的 {token_type}: 必须是字符串类型")

    # 然后检查是否为空
    if not token:
        raise ValidationError(f"无效的 {token_type}: 不能为空")

    # 检查是否包含路径遍历序列
    dangerous_patterns = ['..', '/', '\\', '%2e', '%2f', '%5c']
    token_lower = token.lower()
    for pattern in dangerous_patterns:
        if pattern in token_lower:
            raise ValidationError(
                f"无效的 {token_type}: 包含非法字符序列 '{pattern}'"
            )

    # 检查是否符合预期格式
    if not TOKEN_PATTERN.match(token):
        raise ValidationError(
            f"无效的 {token_type}: 只能包含字母、数字、下划线和短横线"
        )

    return token


def validate_base_id(base_id: str) -> str:
    """验证 base ID"""
    return validate_token(base_id, "base_id")


def validate_record_id(record_id: str) -> str:
    """验证记录 ID"""
    return validate_token(record_id, "record_id")


def is_table_id(table_key: str) -> bool:
    """判断传入的是数据表 ID 还是数据表名称"""
    return bool(TABLE_ID_PATTERN.match(table_key))


def validate_merge_on(merge_on: Sequence[str]) -> List[str]:
    """
    验证 upsert 的合并字段

    Args:
        merge_on: 用于匹配已有记录的字段名列表

    Returns:
        List[str]: 验证通过的字段名列表

    Raises:
        ValidationError: 字段数量不在 1-3 之间或字段名为空时
    """
    if isinstance(merge_on, str):
        merge_on = [merge_on]
    fields = list(merge_on or [])
    if not MIN_MERGE_FIELDS <= len(fields) <= MAX_MERGE_FIELDS:
        raise ValidationError(
            f"merge_on 需要 {MIN_MERGE_FIELDS}-{MAX_MERGE_FIELDS} 个字段，当前为 {len(fields)} 个"
        )
    for name in fields:
        if not isinstance(name, str) or not name:
            raise ValidationError(f"merge_on 字段名无效: {name!r}")
    return fields


def validate_file_path(
    file_path: Path,
    allowed_extensions: Optional[list] = None
) -> Path:
    """
    验证文件路径的安全性

    检查：
    1. 路径不包含危险的遍历序列
    2. 文件扩展名在允许列表中（如果提供）

    Args:
        file_path: 要验证的文件路径
        allowed_extensions: 允许的文件扩展名列表（如 ['.xlsx', '.csv']）

    Returns:
        Path: 验证通过的路径（已解析为绝对路径）

    Raises:
        ValidationError: 当路径不安全或扩展名不允许时
    """
    if file_path is None:
        raise ValidationError("文件路径不能为空")

    path_str = str(file_path)

    if not path_str or path_str == '.':
        raise ValidationError("文件路径不能为空")

    if '..' in path_str:
        raise ValidationError(
            "不安全的文件路径: 包含路径遍历序列 '..'"
        )

    resolved_path = Path(file_path).resolve()

    if allowed_extensions:
        ext = resolved_path.suffix.lower()
        if ext not in [e.lower() for e in allowed_extensions]:
            raise ValidationError(
                f"不支持的文件扩展名: {ext}，允许的扩展名: {allowed_extensions}"
            )

    return resolved_path
