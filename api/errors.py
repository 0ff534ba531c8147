#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
接口错误分类模块

模块概述：
    将 Airtable 接口返回的 HTTP 状态码映射为固定的异常类型，并决定哪些
    失败需要重试。所有异常都携带服务端返回的错误信息（如果有）。

状态码映射：
    400 - BadRequest           请求参数错误
    401 - Unauthorized         认证失败
    403 - Forbidden            权限不足
    404 - NotFound             资源不存在
    413 - PayloadTooLarge      请求体过大
    422 - InvalidRequest       请求无法处理
    429 - TooManyRequests      请求过快
    500 - InternalServerError  服务器内部错误
    502 - BadGateway           网关错误（可重试）
    503 - ServiceUnavailable   服务不可用
    NetworkError               网络连接失败（可重试）

分类策略：
    - 400 以下的未知状态码按成功处理（向前兼容）
    - 400 及以上的未知状态码抛出基类 AirtableError，不会被吞掉
    - 仅 NetworkError 和 BadGateway 会被重试，其余错误立即抛出

错误响应格式：
    {"error": {"type": "NOT_FOUND", "message": "Could not find record"}}
    {"error": "NOT_FOUND"}

作者: XTA Team
"""

from typing import Any, Dict, Optional, Type


class AirtableError(Exception):
    """Airtable 接口错误基类"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class BadRequest(AirtableError):
    pass


class Unauthorized(AirtableError):
    pass


class Forbidden(AirtableError):
    pass


class NotFound(AirtableError):
    pass


class PayloadTooLarge(AirtableError):
    pass


class InvalidRequest(AirtableError):
    pass


class TooManyRequests(AirtableError):
    pass


class InternalServerError(AirtableError):
    pass


class BadGateway(AirtableError):
    pass


class ServiceUnavailable(AirtableError):
    pass


class NetworkError(AirtableError):
    """网络连接失败（未收到任何响应）"""
    pass


STATUS_ERRORS: Dict[int, Type[AirtableError]] = {
    400: BadRequest,
    401: Unauthorized,
    403: Forbidden,
    404: NotFound,
    413: PayloadTooLarge,
    422: InvalidRequest,
    429: TooManyRequests,
    500: InternalServerError,
    502: BadGateway,
    503: ServiceUnavailable,
}

# 服务端未返回错误信息时使用的通用描述
STATUS_DESCRIPTIONS: Dict[int, str] = {
    400: "请求参数错误",
    401: "认证失败，请检查 API 密钥",
    403: "没有访问该资源的权限",
    404: "请求的资源不存在",
    413: "请求体过大",
    422: "请求无法处理",
    429: "请求过于频繁",
    500: "服务器内部错误",
    502: "网关错误",
    503: "服务暂时不可用",
}


def _describe(status: int) -> str:
    if status in STATUS_DESCRIPTIONS:
        return STATUS_DESCRIPTIONS[status]
    if status >= 500:
        return f"服务器错误 (HTTP {status})"
    return f"客户端错误 (HTTP {status})"


def _extract_error(body: Any):
    """从响应体中提取 (message, error_type)"""
    if not isinstance(body, dict):
        return None, None
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message"), error.get("type")
    if isinstance(error, str):
        return error, error
    return None, None


def classify(status: int, body: Any = None) -> Optional[AirtableError]:
    """
    将状态码映射为异常实例

    Args:
        status: HTTP 状态码
        body: 已解析的响应体（可能为 None）

    Returns:
        成功时返回 None，否则返回对应的异常实例（不抛出）
    """
    error_class = STATUS_ERRORS.get(status)
    if error_class is None:
        if status < 400:
            return None
        error_class = AirtableError

    message, error_type = _extract_error(body)
    return error_class(message or _describe(status), status_code=status, error_type=error_type)


def is_retryable(error: BaseException) -> bool:
    """网络失败和网关错误可重试，其余错误由调用方处理"""
    return isinstance(error, (NetworkError, BadGateway))
