#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
批量操作模块

模块概述：
    Airtable 的批量创建/更新/删除/upsert 接口每次最多接受 10 条记录。
    此模块将任意数量的输入切分为连续的批次，按顺序逐批调用，并按输入
    顺序拼接各批次的结果。

部分失败语义：
    批次之间不是原子的。第 k 批失败时，前 k-1 批已经在服务端提交且不会
    回滚；调用方收到的是第一个失败批次的原始异常，无法仅凭此层得知失败
    批次中的哪一条记录导致了错误（需要根据错误信息或重新查询判断）。

作者: XTA Team
"""

import logging
from typing import Any, Callable, List, Sequence, TypeVar

T = TypeVar("T")

# 接口固定上限，不可配置
MAX_BATCH_SIZE = 10

logger = logging.getLogger("XTA.batch")


def chunked(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """按顺序切分为大小不超过 chunk_size 的批次"""
    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]


def run_batched(
    items: Sequence[T],
    operation: Callable[[List[T]], List[Any]],
    chunk_size: int = MAX_BATCH_SIZE,
) -> List[Any]:
    """
    分批执行操作并按输入顺序拼接结果

    Args:
        items: 输入列表
        operation: 处理单个批次的函数，返回该批次的结果列表
        chunk_size: 批次大小，超过接口上限时自动降至上限

    Returns:
        所有批次结果按顺序拼接的列表

    Raises:
        第一个失败批次抛出的异常（之前的批次已提交）
    """
    if chunk_size <= 0 or chunk_size > MAX_BATCH_SIZE:
        logger.warning(f"chunk_size={chunk_size} 超出接口范围，已自动使用 {MAX_BATCH_SIZE}")
        chunk_size = MAX_BATCH_SIZE

    batches = chunked(items, chunk_size)
    total_batches = len(batches)
    results: List[Any] = []
    committed = 0

    for batch_num, batch in enumerate(batches, start=1):
        try:
            batch_results = operation(batch)
        except Exception as e:
            logger.error(
                f"批次 {batch_num}/{total_batches} 处理失败: {e}；"
                f"之前已提交 {committed} 条记录，未回滚"
            )
            raise
        results.extend(batch_results or [])
        committed += len(batch)
        logger.debug(f"批次 {batch_num}/{total_batches} 处理成功 ({len(batch)} 条记录)")

    return results


def collapse_single(results: List[Any]) -> Any:
    """单条结果返回元素本身，否则返回列表"""
    if len(results) == 1:
        return results[0]
    return results
