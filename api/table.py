#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
数据表 API 模块

模块概述：
    此模块封装了 Airtable 数据表的记录操作和 base 结构操作。所有请求
    都经过 RequestPipeline（认证、频控、重试、键名转换），批量写操作
    经过 run_batched 按 10 条一批切分，列表查询经过 collect_all 自动翻页。

主要功能：
    1. 记录查询（单条获取、分页列表、获取全部）
    2. 记录创建（批量）
    3. 记录更新（批量，PATCH 部分更新 / PUT 覆盖更新）
    4. 记录 upsert（按 1-3 个字段匹配已有记录）
    5. 记录删除（批量）
    6. base 结构获取、数据表创建

核心类：
    TableAPI:
        绑定到单个数据表的 API 客户端，可以单独配置该表使用的令牌。

API 限制常量：
    - MAX_PAGE_SIZE: 100（列表接口每页最大记录数）
    - MAX_BATCH_SIZE: 10（批量写接口每次最大记录数）

API 端点（基础路径：https://api.airtable.com/v0）：
    记录：
        GET    /{base_id}/{table}/{record_id}   - 获取单条记录
        POST   /{base_id}/{table}/listRecords   - 分页列出记录
        POST   /{base_id}/{table}               - 批量创建
        PATCH  /{base_id}/{table}               - 批量更新 / upsert
        PUT    /{base_id}/{table}               - 批量覆盖更新
        DELETE /{base_id}/{table}?records[]=... - 批量删除
    结构：
        GET    /meta/bases/{base_id}/tables     - 获取 base 结构
        POST   /meta/bases/{base_id}/tables     - 创建数据表

使用示例：
    >>> pipeline = RequestPipeline(AirtableAuth("patXXX"))
    >>> table = TableAPI(pipeline, "appXXX", "Contacts")
    >>> table.create({"Name": "Alice"})
    >>> records = table.all(filter_by_formula="{Status}='Active'")
    >>> table.upsert([{"fields": {"Email": "a@x.com", "Name": "A"}}], merge_on=["Email"])

注意事项：
    1. 批量写入不是原子操作，详见 api.batch
    2. 数据表名称会被 URL 编码后拼接进路径
    3. 更新操作要求每条记录都带 id，未持久化的记录请使用 upsert

作者: XTA Team
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from utils.validators import (
    ValidationError,
    is_table_id,
    validate_base_id,
    validate_merge_on,
    validate_record_id,
)

from .base import RequestPipeline
from .errors import AirtableError
from .batch import MAX_BATCH_SIZE, collapse_single, run_batched
from .pagination import collect_all
from .record import Record, UpsertResult

RecordInput = Union[Record, Dict[str, Any]]


def _to_record(value: RecordInput, id_required: bool = False) -> Record:
    """将 Record 或 {"id": ..., "fields": {...}} 统一为 Record"""
    if isinstance(value, Record):
        record = value
    elif isinstance(value, dict):
        if "fields" not in value:
            raise ValidationError(f"记录缺少 fields: {value}")
        record = Record(fields=value["fields"], id=value.get("id"))
    else:
        raise ValidationError(
            f"需要传入 Record 或记录字典，但 {value!r} 的类型是 {type(value).__name__}"
        )

    if id_required and record.is_new:
        raise ValidationError("更新操作要求每条记录都带 id，未持久化的记录请使用 upsert(merge_on=...)")
    return record


class TableAPI:
    """Airtable 数据表 API 客户端"""

    MAX_PAGE_SIZE = 100
    MAX_BATCH_SIZE = MAX_BATCH_SIZE

    def __init__(
        self,
        pipeline: RequestPipeline,
        base_id: str,
        table_key: str,
        api_key: Optional[str] = None,
    ):
        """
        初始化数据表 API 客户端

        Args:
            pipeline: 请求管道
            base_id: base ID（appXXX）
            table_key: 数据表 ID（tblXXX）或数据表名称
            api_key: 该表专用令牌，未设置时使用管道默认令牌
        """
        if not table_key:
            raise ValidationError("需要传入数据表 ID 或数据表名称")
        self.pipeline = pipeline
        self.base_id = validate_base_id(base_id)
        self.table_key = table_key
        self.api_key = api_key
        self.logger = logging.getLogger("XTA.table")

    @property
    def path(self) -> str:
        if is_table_id(self.table_key):
            return f"/{self.base_id}/{self.table_key}"
        return f"/{self.base_id}/{quote(self.table_key, safe='')}"

    def _key(self, api_key: Optional[str]) -> Optional[str]:
        return api_key or self.api_key

    def new_record(self, fields: Dict[str, Any]) -> Record:
        """创建未持久化的记录对象"""
        return Record(fields=fields)

    # ========== 查询 ==========

    def find(self, record_id: str, api_key: Optional[str] = None) -> Record:
        """获取单条记录"""
        path = f"{self.path}/{validate_record_id(record_id)}"
        response = self.pipeline.get(path, api_key=self._key(api_key))
        return Record.from_api(response)

    def records_page(
        self,
        offset: Optional[str] = None,
        page_size: Optional[int] = None,
        max_records: Optional[int] = None,
        fields: Optional[List[str]] = None,
        view: Optional[str] = None,
        sort: Optional[List[Dict[str, str]]] = None,
        filter_by_formula: Optional[str] = None,
        time_zone: Optional[str] = None,
        user_locale: Optional[str] = None,
        cell_format: Optional[str] = None,
        return_fields_by_field_id: Optional[bool] = None,
        record_metadata: Optional[List[str]] = None,
        api_key: Optional[str] = None,
    ) -> Tuple[List[Record], Optional[str]]:
        """
        获取一页记录

        Returns:
            记录列表和下一页游标的元组，游标为 None 表示没有更多数据
        """
        if page_size is not None and not 0 < page_size <= self.MAX_PAGE_SIZE:
            self.logger.warning(
                f"page_size={page_size} 超出接口范围，已自动使用 {self.MAX_PAGE_SIZE}"
            )
            page_size = self.MAX_PAGE_SIZE

        body = {
            "offset": offset,
            "page_size": page_size,
            "max_records": max_records,
            "fields": fields,
            "view": view,
            "sort": sort,
            "filter_by_formula": filter_by_formula,
            "time_zone": time_zone,
            "user_locale": user_locale,
            "cell_format": cell_format,
            "return_fields_by_field_id": return_fields_by_field_id,
            "record_metadata": record_metadata,
        }
        response = self.pipeline.post(f"{self.path}/listRecords", body, api_key=self._key(api_key))
        records = [Record.from_api(item) for item in response.get("records", [])]
        return records, response.get("offset")

    def all(self, api_key: Optional[str] = None, **query) -> List[Record]:
        """
        获取全部记录（自动翻页）

        Args:
            api_key: 单次调用令牌
            **query: 传给 records_page 的查询参数（offset 除外）

        Returns:
            所有记录的列表
        """
        query.pop("offset", None)
        self.logger.info(f"开始拉取数据表 {self.table_key} 的记录...")
        return collect_all(
            lambda cursor: self.records_page(offset=cursor, api_key=api_key, **query)
        )

    records = all

    # ========== 写入 ==========

    def create(
        self,
        record_or_records: Union[RecordInput, Sequence[RecordInput]],
        typecast: bool = False,
        api_key: Optional[str] = None,
    ) -> Union[Record, List[Record]]:
        """
        创建记录

        Args:
            record_or_records: 单个字段字典/Record，或它们的列表
            typecast: 是否让服务端按字段类型自动转换值
            api_key: 单次调用令牌

        Returns:
            创建单条记录时返回 Record，否则返回 Record 列表（与输入顺序一致）
        """
        if isinstance(record_or_records, (dict, Record)):
            items = [record_or_records]
        else:
            items = list(record_or_records)

        payloads = [
            {"fields": item.fields} if isinstance(item, Record) else {"fields": item}
            for item in items
        ]
        key = self._key(api_key)

        def create_slice(chunk):
            response = self.pipeline.post(self.path, {"records": chunk, "typecast": typecast}, api_key=key)
            return [Record.from_api(item) for item in response.get("records", [])]

        created = run_batched(payloads, create_slice)
        self.logger.debug(f"成功创建 {len(created)} 条记录")
        return collapse_single(created)

    def update(
        self,
        records: Sequence[RecordInput],
        overwrite: bool = False,
        typecast: bool = False,
        api_key: Optional[str] = None,
    ) -> List[Record]:
        """
        批量更新记录

        Args:
            records: Record 或 {"id": ..., "fields": {...}} 列表，id 必填
            overwrite: True 时使用 PUT，未传入的字段会被清空
            typecast: 是否让服务端按字段类型自动转换值
            api_key: 单次调用令牌

        Returns:
            更新后的记录列表（与输入顺序一致）
        """
        payloads = [_to_record(item, id_required=True).to_api_dict() for item in records]
        send = self.pipeline.put if overwrite else self.pipeline.patch
        key = self._key(api_key)

        def update_slice(chunk):
            response = send(self.path, {"records": chunk, "typecast": typecast}, api_key=key)
            return [Record.from_api(item) for item in response.get("records", [])]

        updated = run_batched(payloads, update_slice)
        self.logger.debug(f"成功更新 {len(updated)} 条记录")
        return updated

    def upsert(
        self,
        records: Sequence[RecordInput],
        merge_on: Sequence[str],
        overwrite: bool = False,
        typecast: bool = False,
        api_key: Optional[str] = None,
    ) -> UpsertResult:
        """
        按合并字段 upsert 记录

        服务端用 merge_on 字段的值匹配已有记录：匹配到则更新，否则新建。

        Args:
            records: Record、{"fields": {...}} 或字段字典列表
            merge_on: 1-3 个用于匹配的字段名
            overwrite: True 时使用 PUT
            typecast: 是否让服务端按字段类型自动转换值
            api_key: 单次调用令牌

        Returns:
            UpsertResult
        """
        fields_to_merge_on = validate_merge_on(merge_on)
        payloads = []
        for item in records:
            if isinstance(item, dict) and "fields" not in item:
                item = {"fields": item}
            payloads.append(_to_record(item).to_api_dict())

        send = self.pipeline.put if overwrite else self.pipeline.patch
        key = self._key(api_key)
        result = UpsertResult()

        def upsert_slice(chunk):
            body = {
                "perform_upsert": {"fields_to_merge_on": fields_to_merge_on},
                "records": chunk,
                "typecast": typecast,
            }
            response = send(self.path, body, api_key=key)
            result.created_records.extend(response.get("created_records", []))
            result.updated_records.extend(response.get("updated_records", []))
            return [Record.from_api(item) for item in response.get("records", [])]

        result.records = run_batched(payloads, upsert_slice)
        self.logger.info(
            f"upsert 完成: 新建 {len(result.created_records)} 条，更新 {len(result.updated_records)} 条"
        )
        return result

    def delete(
        self,
        records_or_record_ids: Sequence[Union[Record, str]],
        api_key: Optional[str] = None,
    ) -> List[str]:
        """
        批量删除记录

        Args:
            records_or_record_ids: Record 或记录 ID 列表

        Returns:
            服务端确认删除的记录 ID 列表（与输入顺序一致）
        """
        record_ids = []
        for item in records_or_record_ids:
            if isinstance(item, Record):
                if item.is_new:
                    raise ValidationError("不能删除未持久化的记录")
                record_ids.append(item.id)
            elif isinstance(item, str):
                record_ids.append(validate_record_id(item))
            else:
                raise ValidationError(
                    f"需要传入 Record 或记录 ID，但 {item!r} 的类型是 {type(item).__name__}"
                )
        key = self._key(api_key)

        def delete_slice(chunk):
            response = self.pipeline.delete(self.path, api_key=key, params={"records[]": chunk})
            return [item["id"] for item in response.get("records", []) if item.get("deleted")]

        deleted = run_batched(record_ids, delete_slice)
        self.logger.debug(f"成功删除 {len(deleted)} 条记录")
        return deleted

    def update_record(
        self,
        record_id: str,
        fields: Dict[str, Any],
        overwrite: bool = False,
        typecast: bool = False,
        api_key: Optional[str] = None,
    ) -> Record:
        """更新单条记录"""
        path = f"{self.path}/{validate_record_id(record_id)}"
        send = self.pipeline.put if overwrite else self.pipeline.patch
        response = send(path, {"fields": fields, "typecast": typecast}, api_key=self._key(api_key))
        return Record.from_api(response)

    def delete_record(self, record_id: str, api_key: Optional[str] = None) -> bool:
        """删除单条记录"""
        path = f"{self.path}/{validate_record_id(record_id)}"
        response = self.pipeline.delete(path, api_key=self._key(api_key))
        return bool(response.get("deleted"))

    def save(self, record: Record, typecast: bool = False, api_key: Optional[str] = None) -> Record:
        """保存记录：新记录创建，已有记录部分更新。传入的对象会被原地更新"""
        if record.is_new:
            saved = self.create(record, typecast=typecast, api_key=api_key)
        else:
            saved = self.update_record(record.id, record.fields, typecast=typecast, api_key=api_key)
        if not isinstance(saved, Record) or saved.id is None:
            raise AirtableError("保存记录失败: 响应中没有返回记录")
        record.id = saved.id
        record.fields = saved.fields
        record.created_time = saved.created_time or record.created_time
        return record


# ========== base 结构 ==========

def get_base_schema(
    pipeline: RequestPipeline, base_id: str, api_key: Optional[str] = None
) -> List[Dict[str, Any]]:
    """获取 base 中所有数据表的结构（字段、视图、主字段）"""
    path = f"/meta/bases/{validate_base_id(base_id)}/tables"
    return pipeline.get(path, api_key=api_key).get("tables", [])


def create_table(
    pipeline: RequestPipeline,
    base_id: str,
    name: str,
    fields: List[Dict[str, Any]],
    description: Optional[str] = None,
    api_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    在 base 中创建数据表

    Args:
        pipeline: 请求管道
        base_id: base ID
        name: 数据表名称
        fields: 字段定义列表，如 [{"name": "Name", "type": "singleLineText"}]
        description: 数据表描述
        api_key: 单次调用令牌

    Returns:
        新数据表的结构
    """
    path = f"/meta/bases/{validate_base_id(base_id)}/tables"
    body = {"name": name, "fields": fields, "description": description}
    return pipeline.post(path, body, api_key=api_key)
