#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
基础网络层模块
提供滑动窗口频率限制和统一的请求管道（认证、编码、频控、重试、解码）
"""

import bisect
import logging
import threading
import time
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional, TextIO

import requests

from . import codec
from .auth import AirtableAuth, mask_token
from .errors import AirtableError, NetworkError, classify, is_retryable

API_BASE_URL = "https://api.airtable.com/v0"
USER_AGENT = "XTA/1.0.0"
JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def parse_server_time(date_header: Optional[str]) -> Optional[float]:
    """解析响应头 Date，失败时返回 None"""
    if not date_header:
        return None
    try:
        return parsedate_to_datetime(date_header).timestamp()
    except (TypeError, ValueError, IndexError):
        return None


class RateLimiter:
    """滑动窗口频率限制器（Airtable 限制为每个 base 每秒 5 次请求）"""

    def __init__(self, max_requests: int = 5, window: float = 1.0):
        """
        初始化频率限制器

        Args:
            max_requests: 窗口内允许的最大请求数
            window: 窗口长度（秒）
        """
        self.max_requests = max_requests
        self.window = window
        self.timestamps: List[float] = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger("XTA.ratelimit")

    def _trim(self, now: float):
        self.timestamps = [ts for ts in self.timestamps if now - ts < self.window]

    def admit(self) -> float:
        """
        等待直到窗口内有空位，并占用一个位置

        判断和占位在同一个临界区内完成，多个线程并发调用时不会同时
        看到空位而一起超出限制。每次等待后重新检查窗口。

        Returns:
            占位时间戳，请求完成后传给 record()
        """
        with self._lock:
            while True:
                now = time.time()
                self._trim(now)
                if len(self.timestamps) < self.max_requests:
                    break
                sleep_for = self.window - (now - self.timestamps[0])
                self.logger.debug(f"频率限制：等待 {sleep_for:.3f} 秒")
                time.sleep(sleep_for)

            ticket = time.time()
            bisect.insort(self.timestamps, ticket)
            return ticket

    def record(self, ticket: float, date_header: Optional[str] = None):
        """
        用服务端时间替换占位时间戳

        优先使用响应头 Date，使本地窗口与服务端计数保持一致；
        响应头缺失或无法解析时使用本地时间。服务端时间晚于本地时间
        （时钟偏差）时按本地时间记录，窗口内的时间戳不会出现在未来。
        """
        now = time.time()
        server_time = parse_server_time(date_header)
        request_time = now if server_time is None else min(server_time, now)
        with self._lock:
            if ticket in self.timestamps:
                self.timestamps.remove(ticket)
            bisect.insort(self.timestamps, request_time)


class RequestPipeline:
    """Airtable 请求管道"""

    def __init__(
        self,
        auth: Optional[AirtableAuth] = None,
        rate_limiter: Optional[RateLimiter] = None,
        base_url: str = API_BASE_URL,
        debug: bool = False,
        debug_sink: Optional[TextIO] = None,
        max_retries: Optional[int] = None,
        timeout: float = 60,
    ):
        """
        初始化请求管道

        Args:
            auth: 认证管理器（提供进程级默认令牌）
            rate_limiter: 频率限制器，多个管道可以共享同一个实例
            base_url: 接口根地址
            debug: 是否将请求内容输出到调试流
            debug_sink: 调试输出流，未设置时写入 XTA.pipeline 日志
            max_retries: 网络错误/网关错误的最大重试次数，None 表示不限
            timeout: 单次请求超时（秒）
        """
        self.auth = auth or AirtableAuth()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.base_url = base_url.rstrip("/")
        self.debug = debug
        self.debug_sink = debug_sink
        self.max_retries = max_retries
        self.timeout = timeout
        self.logger = logging.getLogger("XTA.pipeline")

    def call_api(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        执行一次物理请求（经过频率限制）

        Raises:
            NetworkError: 连接失败时
        """
        ticket = self.rate_limiter.admit()
        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"网络连接失败: {e}") from e
        self.rate_limiter.record(ticket, response.headers.get("Date"))
        return response

    def execute(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        api_key: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        执行一个逻辑请求

        Args:
            method: HTTP 方法
            path: 接口路径，如 /appXXX/tblXXX
            body: 请求体（snake_case 键名），为 None 时不发送
            api_key: 单次调用令牌，覆盖默认令牌
            params: 查询参数（原样发送）

        Returns:
            解码后的响应体（snake_case 键名）

        Raises:
            AirtableError: 不可重试的错误，或超过 max_retries 后的最后一次错误
        """
        method = method.upper()
        token = self.auth.resolve(api_key)
        headers = {
            "Authorization": f"Bearer {token}",
            "User-Agent": USER_AGENT,
        }
        kwargs: Dict[str, Any] = {"headers": headers}
        payload = None
        if body is not None:
            payload = codec.encode(body)
            headers["Content-Type"] = JSON_CONTENT_TYPE
            kwargs["data"] = payload.encode("utf-8")
        if params:
            kwargs["params"] = params

        url = f"{self.base_url}{path}"
        if self.debug:
            self._mirror_request(method, url, params, token, payload)

        attempt = 0
        while True:
            try:
                response = self.call_api(method, url, **kwargs)
                return self._handle_response(response)
            except AirtableError as e:
                if not is_retryable(e):
                    raise
                if self.max_retries is not None and attempt >= self.max_retries:
                    self.logger.error(f"{method} {path} 重试 {attempt} 次后仍然失败: {e}")
                    raise
                attempt += 1
                self.logger.warning(
                    f"{type(e).__name__}: {e.message}，第 {attempt} 次重试 {method} {path}"
                )

    def _handle_response(self, response: requests.Response) -> Any:
        result = None
        parsed = True
        if response.content:
            try:
                result = response.json()
            except ValueError:
                parsed = False

        error = classify(response.status_code, result)
        if error is not None:
            raise error
        if not parsed:
            raise AirtableError(
                f"响应解析失败, HTTP状态码: {response.status_code}",
                status_code=response.status_code,
            )
        if result is None:
            return {}
        return codec.decode(result)

    def _mirror_request(self, method, url, params, token, payload):
        lines = [f"[XTA] {method} {url}"]
        if params:
            lines.append(f"[XTA] params: {params}")
        lines.append(f"[XTA] Authorization: Bearer {mask_token(token)}")
        if payload is not None:
            lines.append(f"[XTA] body: {payload}")

        if self.debug_sink is None:
            for line in lines:
                self.logger.info(line)
            return
        for line in lines:
            print(line, file=self.debug_sink)

    def get(self, path: str, api_key: Optional[str] = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.execute("GET", path, api_key=api_key, params=params)

    def post(self, path: str, body: Optional[Dict[str, Any]] = None, api_key: Optional[str] = None,
             params: Optional[Dict[str, Any]] = None) -> Any:
        return self.execute("POST", path, body, api_key=api_key, params=params)

    def patch(self, path: str, body: Optional[Dict[str, Any]] = None, api_key: Optional[str] = None,
              params: Optional[Dict[str, Any]] = None) -> Any:
        return self.execute("PATCH", path, body, api_key=api_key, params=params)

    def put(self, path: str, body: Optional[Dict[str, Any]] = None, api_key: Optional[str] = None,
            params: Optional[Dict[str, Any]] = None) -> Any:
        return self.execute("PUT", path, body, api_key=api_key, params=params)

    def delete(self, path: str, api_key: Optional[str] = None, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.execute("DELETE", path, api_key=api_key, params=params)
