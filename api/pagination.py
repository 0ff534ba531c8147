#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
分页遍历模块

列表接口每页返回一个不透明的 offset 游标，游标存在表示还有下一页，
缺失表示已经取完。collect_all 不限制页数：服务端若永远返回游标，
遍历不会结束。最大记录数应由取页函数通过请求参数（max_records）控制。
"""

import logging
from typing import Any, Callable, List, Optional, Tuple

PageFetcher = Callable[[Optional[str]], Tuple[List[Any], Optional[str]]]

logger = logging.getLogger("XTA.pagination")


def collect_all(page_fetcher: PageFetcher) -> List[Any]:
    """
    依次取页直到游标缺失

    Args:
        page_fetcher: 接收游标（首次为 None），返回 (本页条目, 下一页游标)

    Returns:
        所有页条目按顺序拼接的列表
    """
    items: List[Any] = []
    cursor = None
    page_num = 0

    while True:
        page_items, cursor = page_fetcher(cursor)
        items.extend(page_items)
        page_num += 1

        if page_num == 1 or page_num % 5 == 0 or cursor is None:
            logger.info(f"已拉取 {len(items)} 条记录（第 {page_num} 页）")

        if cursor is None:
            return items
