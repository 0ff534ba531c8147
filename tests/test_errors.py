#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
错误分类测试

测试覆盖：
    - 已知状态码映射到对应异常
    - 服务端错误信息提取（对象格式和字符串格式）
    - 未知状态码的处理
    - 可重试判断

作者: XTA Team
"""

import pytest

from api.errors import (
    AirtableError,
    BadGateway,
    BadRequest,
    Forbidden,
    InternalServerError,
    InvalidRequest,
    NetworkError,
    NotFound,
    PayloadTooLarge,
    ServiceUnavailable,
    TooManyRequests,
    Unauthorized,
    classify,
    is_retryable,
)


class TestClassify:
    """状态码分类测试"""

    @pytest.mark.parametrize("status,error_class", [
        (400, BadRequest),
        (401, Unauthorized),
        (403, Forbidden),
        (404, NotFound),
        (413, PayloadTooLarge),
        (422, InvalidRequest),
        (429, TooManyRequests),
        (500, InternalServerError),
        (502, BadGateway),
        (503, ServiceUnavailable),
    ])
    def test_known_status(self, status, error_class):
        """测试已知状态码"""
        error = classify(status)

        assert type(error) is error_class
        assert error.status_code == status
        assert error.message

    @pytest.mark.parametrize("status", [200, 201, 204, 304])
    def test_success_status(self, status):
        """测试 400 以下按成功处理"""
        assert classify(status, {"id": "rec1"}) is None

    def test_error_object_message(self):
        """测试对象格式的错误信息"""
        error = classify(422, {"error": {"type": "INVALID_VALUE_FOR_COLUMN", "message": "Field \"Age\" cannot accept"}})

        assert error.message == "Field \"Age\" cannot accept"
        assert error.error_type == "INVALID_VALUE_FOR_COLUMN"
        assert str(error) == error.message

    def test_error_string(self):
        """测试字符串格式的错误信息"""
        error = classify(404, {"error": "NOT_FOUND"})

        assert error.message == "NOT_FOUND"
        assert error.error_type == "NOT_FOUND"

    def test_missing_message_uses_description(self):
        """测试没有错误信息时使用通用描述"""
        assert classify(404, {"error": {"type": "NOT_FOUND"}}).message == "请求的资源不存在"
        assert classify(500, "oops").message == "服务器内部错误"

    def test_unknown_error_status(self):
        """测试未知错误状态码抛出基类"""
        client_error = classify(418)
        server_error = classify(599)

        assert type(client_error) is AirtableError
        assert "418" in client_error.message
        assert type(server_error) is AirtableError
        assert "599" in server_error.message


class TestRetryable:
    """可重试判断测试"""

    def test_retryable_errors(self):
        assert is_retryable(NetworkError("down"))
        assert is_retryable(BadGateway("bad gateway", status_code=502))

    @pytest.mark.parametrize("error", [
        TooManyRequests("slow down", status_code=429),
        ServiceUnavailable("busy", status_code=503),
        InternalServerError("boom", status_code=500),
        InvalidRequest("bad", status_code=422),
        ValueError("not an api error"),
    ])
    def test_not_retryable(self, error):
        assert not is_retryable(error)

    def test_hierarchy(self):
        """测试所有错误都可以按基类捕获"""
        for error_class in (NotFound, NetworkError, BadGateway):
            assert issubclass(error_class, AirtableError)
