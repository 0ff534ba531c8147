#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
XTA 测试套件包

模块概述：
    此包包含 XTA 工具的所有单元测试。使用 pytest 框架进行测试组织和执行，
    网络请求通过 unittest.mock 替换 requests.request。

包结构：
    tests/
    ├── __init__.py         - 测试包初始化
    ├── conftest.py         - pytest 配置和共享 fixtures
    ├── test_api_base.py    - 频率限制器与请求管道测试
    ├── test_batch.py       - 批量操作与分页遍历测试
    ├── test_codec.py       - 键名编解码测试
    ├── test_config.py      - 配置模块测试
    ├── test_converter.py   - 转换模块测试
    ├── test_engine.py      - 同步引擎测试
    ├── test_errors.py      - 错误分类测试
    ├── test_reader.py      - 读取模块测试
    ├── test_table.py       - 数据表 API 测试
    └── test_validators.py  - 输入验证测试

运行测试：
    # 运行所有测试
    $ pytest tests/

    # 运行特定测试文件
    $ pytest tests/test_table.py

    # 详细输出
    $ pytest tests/ -v

作者: XTA Team
"""
# XTA Test Suite
