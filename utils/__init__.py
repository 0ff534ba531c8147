#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
XTA 工具模块包

模块概述：
    此包包含 XTA 工具的通用工具函数，提供跨模块使用的公共功能。

包结构：
    utils/
    ├── __init__.py         - 包初始化
    └── validators.py       - 输入验证模块

当前功能：
    - 输入验证（ID 格式、upsert 合并字段、文件路径）

设计原则：
    - 工具函数应是无状态的纯函数
    - 尽量减少对其他模块的依赖

作者: XTA Team
"""
