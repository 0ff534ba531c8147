#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Airtable API 模块包

模块概述：
    此包封装了 Airtable REST API 的调用，核心是统一的请求管道：
    每个逻辑操作都经过认证、键名编码、频率限制、网络请求、错误分类
    与重试、响应解码这几步。批量写入和列表查询在管道之上分别由
    分批执行和分页遍历组合而成。

包结构：
    api/
    ├── __init__.py     - 包初始化，导出公共接口
    ├── auth.py         - 令牌解析（AirtableAuth）
    ├── codec.py        - snake_case / camelCase 键名编解码
    ├── errors.py       - 错误类型与状态码分类
    ├── base.py         - 基础网络层（RateLimiter, RequestPipeline）
    ├── batch.py        - 分批执行（每批最多 10 条）
    ├── pagination.py   - 游标分页遍历
    ├── record.py       - 记录数据模型
    └── table.py        - 数据表 API（TableAPI）

API 调用流程：
    1. AirtableAuth 确定本次请求的令牌
    2. RequestPipeline 编码请求体、等待频控、发送请求、分类错误、
       对网络错误和 502 进行重试、解码响应体
    3. TableAPI 通过 run_batched / collect_all 组合批量与分页操作

使用示例：
    >>> from api import AirtableAuth, RequestPipeline, TableAPI
    >>>
    >>> pipeline = RequestPipeline(AirtableAuth(api_key))
    >>> table = TableAPI(pipeline, base_id, "Contacts")
    >>> records = table.all()

作者: XTA Team
"""

from .auth import AirtableAuth
from .base import RateLimiter, RequestPipeline
from .errors import (
    AirtableError,
    BadRequest,
    Unauthorized,
    Forbidden,
    NotFound,
    PayloadTooLarge,
    InvalidRequest,
    TooManyRequests,
    InternalServerError,
    BadGateway,
    ServiceUnavailable,
    NetworkError,
)
from .record import Record, UpsertResult
from .table import TableAPI, create_table, get_base_schema

__all__ = [
    "AirtableAuth",
    "RateLimiter",
    "RequestPipeline",
    "TableAPI",
    "Record",
    "UpsertResult",
    "get_base_schema",
    "create_table",
    "AirtableError",
    "BadRequest",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "PayloadTooLarge",
    "InvalidRequest",
    "TooManyRequests",
    "InternalServerError",
    "BadGateway",
    "ServiceUnavailable",
    "NetworkError",
]
