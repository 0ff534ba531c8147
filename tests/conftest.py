#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
XTA 测试配置文件

模块概述：
    此模块提供 pytest 测试框架的配置和共享 fixtures。

Fixtures 分类：
    网络 Fixtures：
        - make_response: 构造模拟的 requests.Response
        - fake_clock: 可控的时钟（替换 api.base 中的 time 模块）
        - pipeline: 使用默认令牌的请求管道

    配置 Fixtures：
        - sample_config_dict: 配置字典
        - sample_config: 同步配置对象
        - temp_config_file: 临时配置文件

    数据 Fixtures：
        - sample_dataframe: 基础测试 DataFrame
        - sample_records: 记录列表
        - temp_excel_file / temp_csv_file: 临时数据文件

依赖关系：
    外部依赖：
        - pytest: 测试框架
        - pandas: 数据处理
        - yaml: 配置文件

作者: XTA Team
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional
from unittest.mock import Mock

import pandas as pd
import pytest
import yaml

from api import AirtableAuth, RateLimiter, Record, RequestPipeline
from api.record import parse_created_time
from core.config import ClientConfig


class FakeClock:
    """替换 time 模块：time() 返回当前值，sleep() 推进时间并记录"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    """返回可控时钟"""
    return FakeClock()


@pytest.fixture
def make_response():
    """返回构造模拟响应的工厂函数"""

    def _make(status: int = 200, body: Any = None, headers: Optional[Dict[str, str]] = None,
              text: Optional[str] = None):
        response = Mock()
        response.status_code = status
        response.headers = headers or {}
        if text is not None:
            response.content = text.encode("utf-8")
            response.json.side_effect = ValueError("not json")
        elif body is None:
            response.content = b""
            response.json.side_effect = ValueError("empty")
        else:
            response.content = json.dumps(body).encode("utf-8")
            response.json.return_value = body
        return response

    return _make


@pytest.fixture
def pipeline() -> RequestPipeline:
    """返回使用默认令牌的请求管道"""
    return RequestPipeline(AirtableAuth("patDEFAULT"), rate_limiter=RateLimiter())


@pytest.fixture
def sample_config_dict() -> Dict[str, Any]:
    """返回测试用的配置字典"""
    return {
        "api_key": "patTEST",
        "base_id": "appTEST123",
        "table": "Contacts",
        "action": "sync",
        "file_path": "test_data.xlsx",
        "sync_mode": "full",
        "index_column": "ID",
        "typecast": True,
        "log_level": "INFO",
    }


@pytest.fixture
def sample_config(sample_config_dict) -> ClientConfig:
    """返回同步配置对象"""
    return ClientConfig(**sample_config_dict)


@pytest.fixture
def temp_config_file(tmp_path, sample_config_dict) -> Path:
    """创建临时配置文件用于测试"""
    file_path = tmp_path / "test_config.yaml"
    with open(file_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config_dict, f, allow_unicode=True)
    return file_path


@pytest.fixture
def sample_dataframe() -> pd.DataFrame:
    """返回测试用的 DataFrame"""
    return pd.DataFrame(
        {
            "ID": [1, 2, 3, 4, 5],
            "Name": ["Alice", "Bob", "Charlie", "David", "Eve"],
            "Age": [25, 30, 35, 40, 45],
            "City": ["Beijing", "Shanghai", "Guangzhou", "Shenzhen", "Hangzhou"],
        }
    )


@pytest.fixture
def sample_records() -> list:
    """返回测试用的记录列表"""
    created = parse_created_time("2024-01-01T12:00:00.000Z")
    return [
        Record(id="rec001", fields={"ID": 1, "Name": "Alice"}, created_time=created),
        Record(id="rec002", fields={"ID": 2, "Name": "Bob"}, created_time=created),
        Record(id="rec003", fields={"ID": 3, "Name": "Charlie", "City": "Beijing"}, created_time=created),
    ]


@pytest.fixture
def temp_excel_file(tmp_path, sample_dataframe) -> Path:
    """创建临时 Excel 文件用于测试"""
    file_path = tmp_path / "test_data.xlsx"
    sample_dataframe.to_excel(file_path, index=False)
    return file_path


@pytest.fixture
def temp_csv_file(tmp_path, sample_dataframe) -> Path:
    """创建临时 CSV 文件用于测试"""
    file_path = tmp_path / "test_data.csv"
    sample_dataframe.to_csv(file_path, index=False, encoding="utf-8")
    return file_path
