#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Airtable 认证模块

模块概述：
    此模块负责确定每次请求使用的访问令牌（Personal Access Token），
    并生成接口调用所需的认证头。

令牌优先级：
    1. 单次调用显式传入的 api_key
    2. 数据表级别配置的 api_key（由 TableAPI 作为单次调用参数传入）
    3. 进程级默认令牌（AirtableAuth 初始化时传入）

使用示例：
    >>> auth = AirtableAuth(api_key="patXXXX")
    >>> auth.get_auth_headers()
    {'Authorization': 'Bearer patXXXX'}
    >>> auth.get_auth_headers("patOther")
    {'Authorization': 'Bearer patOther'}

安全注意事项：
    1. 令牌是敏感信息，不要提交到代码仓库
    2. 日志中只输出 mask_token 处理后的令牌

作者: XTA Team
"""

import logging
from typing import Dict, Optional

from utils.validators import ValidationError


def mask_token(token: Optional[str]) -> str:
    """隐藏令牌主体，仅保留前缀"""
    if not token:
        return "<none>"
    return f"{token[:6]}***"


class AirtableAuth:
    """Airtable 认证管理器"""

    def __init__(self, api_key: Optional[str] = None):
        """
        初始化认证管理器

        Args:
            api_key: 进程级默认访问令牌
        """
        self.api_key = api_key
        self.logger = logging.getLogger("XTA.auth")

    def resolve(self, api_key: Optional[str] = None) -> str:
        """
        确定本次请求使用的令牌

        Raises:
            ValidationError: 没有任何可用令牌时
        """
        if api_key:
            self.logger.debug(f"使用调用方指定的令牌 {mask_token(api_key)}")
            return api_key
        if not self.api_key:
            raise ValidationError("缺少 API 密钥：请在配置中设置 api_key 或在调用时传入")
        return self.api_key

    def get_auth_headers(self, api_key: Optional[str] = None) -> Dict[str, str]:
        """获取认证头"""
        return {"Authorization": f"Bearer {self.resolve(api_key)}"}
