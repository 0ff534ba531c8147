#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
同步引擎模块
将数据文件同步到 Airtable 数据表，或将数据表导出为数据文件
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from api import AirtableAuth, AirtableError, RateLimiter, Record, RequestPipeline, TableAPI
from utils.validators import ValidationError, validate_file_path

from .config import Action, ClientConfig, SyncMode
from .converter import DataConverter
from .reader import DataFileReader


class XTASyncEngine:
    """同步引擎"""

    def __init__(self, config: ClientConfig, table_api: Optional[TableAPI] = None,
                 log_dir: Optional[Path] = Path('logs')):
        """
        初始化同步引擎

        Args:
            config: 同步配置对象
            table_api: 数据表 API 客户端，默认按配置创建
            log_dir: 日志文件目录，为 None 时只输出到控制台
        """
        self.config = config

        # 初始化API组件
        if table_api is None:
            self.auth = AirtableAuth(config.api_key)
            self.pipeline = RequestPipeline(
                auth=self.auth,
                rate_limiter=RateLimiter(),
                debug=config.debug,
                max_retries=config.max_retries,
                timeout=config.timeout,
            )
            table_api = TableAPI(self.pipeline, config.base_id, config.table)
        self.api = table_api

        self.converter = DataConverter()
        self.reader = DataFileReader()

        # 设置日志
        self.setup_logging(log_dir)
        self.logger = logging.getLogger("XTA.engine")

    def setup_logging(self, log_dir: Optional[Path]):
        """设置日志"""
        handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
        if log_dir is not None:
            log_dir.mkdir(exist_ok=True)
            log_file = log_dir / f"xta_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
            handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

        # 清除已有的处理器
        logging.getLogger().handlers.clear()

        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers,
        )

    # ========== 入口 ==========

    def run(self) -> bool:
        """按配置执行同步或导出"""
        allowed = list(self.reader.SUPPORTED_FORMATS)
        if self.config.action == Action.EXPORT:
            return self.export(validate_file_path(Path(self.config.output_path), allowed))
        df = self.reader.read_file(validate_file_path(Path(self.config.file_path), allowed))
        return self.sync(df)

    def sync(self, df: pd.DataFrame) -> bool:
        """
        执行同步

        写入按 10 条一批进行且批次之间不是原子的：中途失败时之前的批次
        已经写入数据表，日志会给出失败前已提交的记录数。
        """
        mode = self.config.sync_mode
        handlers = {
            SyncMode.FULL: self.sync_full,
            SyncMode.INCREMENTAL: self.sync_incremental,
            SyncMode.OVERWRITE: self.sync_overwrite,
            SyncMode.CLONE: self.sync_clone,
        }

        index_column = self.config.index_column
        if index_column and index_column not in df.columns:
            self.logger.error(f"索引列 '{index_column}' 不在数据文件中，可用列: {list(df.columns)}")
            return False

        self.logger.info(f"开始{mode.value}同步: {len(df)} 行 -> 数据表 {self.config.table}")
        try:
            handlers[mode](df)
        except (AirtableError, ValidationError) as e:
            self.logger.error(f"同步失败: {type(e).__name__}: {e}")
            return False
        self.logger.info("同步完成")
        return True

    def export(self, output_path: Path) -> bool:
        """导出数据表全部记录到文件"""
        try:
            records = self.api.all()
        except AirtableError as e:
            self.logger.error(f"导出失败: {type(e).__name__}: {e}")
            return False
        df = self.converter.records_to_dataframe(records)
        self.reader.write_file(df, output_path)
        return True

    # ========== 同步模式 ==========

    def _create(self, fields_list: List[Dict[str, Any]]):
        if not fields_list:
            self.logger.info("没有新记录需要同步")
            return
        created = self.api.create(fields_list, typecast=self.config.typecast)
        count = 1 if isinstance(created, Record) else len(created)
        self.logger.info(f"新增 {count} 条记录")

    def _existing_index(self) -> Dict[str, Record]:
        existing = self.api.all(fields=[self.config.index_column])
        self.logger.info(f"🔍 获取到现有记录数量: {len(existing)}")
        return self.converter.build_record_index(existing, self.config.index_column)

    def sync_full(self, df: pd.DataFrame):
        """全量同步：按索引列 upsert"""
        fields_list = self.converter.df_to_fields(df)
        if not self.config.index_column:
            self.logger.warning("未指定索引列，将执行纯新增操作")
            self._create(fields_list)
            return

        fields_list = [f for f in fields_list if self.config.index_column in f]
        skipped = len(df) - len(fields_list)
        if skipped:
            self.logger.warning(f"{skipped} 行索引列为空，已跳过")
        if not fields_list:
            self.logger.info("没有记录需要同步")
            return

        result = self.api.upsert(fields_list, merge_on=[self.config.index_column],
                                 typecast=self.config.typecast)
        self.logger.info(
            f"全量同步结果: 更新 {len(result.updated_records)} 条，新增 {len(result.created_records)} 条"
        )

    def sync_incremental(self, df: pd.DataFrame):
        """增量同步：只新增索引值不存在的记录"""
        fields_list = self.converter.df_to_fields(df)
        if not self.config.index_column:
            self.logger.warning("未指定索引列，将执行纯新增操作")
            self._create(fields_list)
            return

        existing_index = self._existing_index()
        to_create = []
        for fields in fields_list:
            key = self.converter.index_key(fields.get(self.config.index_column))
            if key is not None and key in existing_index:
                continue
            to_create.append(fields)

        self.logger.info(f"增量同步计划: 新增 {len(to_create)} 条记录")
        self._create(to_create)

    def sync_overwrite(self, df: pd.DataFrame):
        """覆盖同步：删除索引值已存在的记录，然后新增全部"""
        if not self.config.index_column:
            raise ValidationError("覆盖同步模式需要指定索引列")

        fields_list = self.converter.df_to_fields(df)
        existing_index = self._existing_index()
        record_ids_to_delete = []
        for fields in fields_list:
            key = self.converter.index_key(fields.get(self.config.index_column))
            if key is not None and key in existing_index:
                record_ids_to_delete.append(existing_index.pop(key).id)

        self.logger.info(
            f"覆盖同步计划: 删除 {len(record_ids_to_delete)} 条已存在记录，然后新增 {len(fields_list)} 条记录"
        )
        if record_ids_to_delete:
            self.api.delete(record_ids_to_delete)
        self._create(fields_list)

    def sync_clone(self, df: pd.DataFrame):
        """克隆同步：清空数据表，然后新增全部"""
        fields_list = self.converter.df_to_fields(df)
        existing_ids = [record.id for record in self.api.all(fields=[])]

        self.logger.info(
            f"克隆同步计划: 删除 {len(existing_ids)} 条已有记录，然后新增 {len(fields_list)} 条记录"
        )
        if existing_ids:
            self.api.delete(existing_ids)
        self._create(fields_list)
