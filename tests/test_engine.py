#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
同步引擎测试
测试 core/engine.py 中四种同步模式和导出功能，数据表 API 使用 Mock 替代
"""

import logging
from unittest.mock import MagicMock

import pandas as pd
import pytest

from api import Record, TableAPI, UpsertResult
from api.errors import InvalidRequest
from core.config import Action, ClientConfig, SyncMode
from core.engine import XTASyncEngine
from utils.validators import ValidationError


@pytest.fixture(autouse=True)
def restore_root_handlers():
    """引擎会重置根日志处理器，测试结束后恢复"""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def api():
    api = MagicMock(spec=TableAPI)
    api.create.side_effect = lambda fields_list, typecast=False: [
        Record(id=f"recNEW{i}", fields=fields) for i, fields in enumerate(fields_list)
    ]
    return api


def make_engine(api, **overrides) -> XTASyncEngine:
    options = {
        "api_key": "patTEST",
        "base_id": "appTEST123",
        "table": "Contacts",
        "file_path": "test_data.xlsx",
        "index_column": "ID",
        "typecast": True,
    }
    options.update(overrides)
    return XTASyncEngine(ClientConfig(**options), table_api=api, log_dir=None)


class TestEngineInit:
    """引擎初始化测试"""

    def test_builds_table_api_from_config(self, sample_config):
        engine = XTASyncEngine(sample_config, log_dir=None)

        assert isinstance(engine.api, TableAPI)
        assert engine.api.base_id == "appTEST123"
        assert engine.api.table_key == "Contacts"
        assert engine.pipeline.auth.api_key == "patTEST"
        assert engine.pipeline.max_retries is None

    def test_log_file_created(self, api, sample_config, tmp_path):
        XTASyncEngine(sample_config, table_api=api, log_dir=tmp_path / "logs")

        assert list((tmp_path / "logs").glob("xta_*.log"))


class TestSyncFull:
    """全量同步测试"""

    def test_upsert_by_index(self, api, sample_dataframe):
        """测试按索引列 upsert"""
        api.upsert.return_value = UpsertResult(created_records=["rec4", "rec5"], updated_records=["rec1"])
        engine = make_engine(api, sync_mode=SyncMode.FULL)

        assert engine.sync(sample_dataframe) is True

        args, kwargs = api.upsert.call_args
        assert len(args[0]) == 5
        assert args[0][0] == {"ID": 1, "Name": "Alice", "Age": 25, "City": "Beijing"}
        assert kwargs == {"merge_on": ["ID"], "typecast": True}
        api.create.assert_not_called()

    def test_rows_without_index_skipped(self, api):
        api.upsert.return_value = UpsertResult()
        df = pd.DataFrame({"ID": ["A", None, "C"], "Name": ["x", "y", "z"]})
        engine = make_engine(api)

        assert engine.sync(df) is True

        assert [f["ID"] for f in api.upsert.call_args.args[0]] == ["A", "C"]

    def test_no_index_creates(self, api, sample_dataframe):
        """测试未指定索引列时只新增"""
        engine = make_engine(api, index_column=None)

        assert engine.sync(sample_dataframe) is True

        api.upsert.assert_not_called()
        assert len(api.create.call_args.args[0]) == 5
        assert api.create.call_args.kwargs == {"typecast": True}

    def test_missing_index_column(self, api, sample_dataframe):
        """测试索引列不在数据文件中"""
        engine = make_engine(api, index_column="Email")

        assert engine.sync(sample_dataframe) is False
        api.upsert.assert_not_called()

    def test_api_error(self, api, sample_dataframe):
        """测试接口错误时返回 False"""
        api.upsert.side_effect = InvalidRequest("bad value", status_code=422)
        engine = make_engine(api)

        assert engine.sync(sample_dataframe) is False


class TestSyncIncremental:
    """增量同步测试"""

    def test_only_new_rows_created(self, api, sample_dataframe, sample_records):
        api.all.return_value = sample_records
        engine = make_engine(api, sync_mode="incremental")

        assert engine.sync(sample_dataframe) is True

        api.all.assert_called_once_with(fields=["ID"])
        assert [f["ID"] for f in api.create.call_args.args[0]] == [4, 5]

    def test_nothing_to_create(self, api, sample_records):
        api.all.return_value = sample_records
        df = pd.DataFrame({"ID": [1.0, 2.0], "Name": ["Alice", "Bob"]})
        engine = make_engine(api, sync_mode="incremental")

        assert engine.sync(df) is True
        api.create.assert_not_called()


class TestSyncOverwrite:
    """覆盖同步测试"""

    def test_delete_then_create(self, api, sample_dataframe, sample_records):
        api.all.return_value = sample_records
        engine = make_engine(api, sync_mode="overwrite")

        assert engine.sync(sample_dataframe) is True

        api.delete.assert_called_once_with(["rec001", "rec002", "rec003"])
        assert len(api.create.call_args.args[0]) == 5

    def test_requires_index_column(self, api, sample_dataframe):
        engine = make_engine(api, sync_mode="overwrite", index_column=None)

        assert engine.sync(sample_dataframe) is False
        api.delete.assert_not_called()
        api.create.assert_not_called()


class TestSyncClone:
    """克隆同步测试"""

    def test_clear_then_create(self, api, sample_dataframe, sample_records):
        api.all.return_value = sample_records
        engine = make_engine(api, sync_mode="clone")

        assert engine.sync(sample_dataframe) is True

        api.all.assert_called_once_with(fields=[])
        api.delete.assert_called_once_with(["rec001", "rec002", "rec003"])
        assert len(api.create.call_args.args[0]) == 5

    def test_empty_table(self, api, sample_dataframe):
        api.all.return_value = []
        engine = make_engine(api, sync_mode="clone")

        assert engine.sync(sample_dataframe) is True
        api.delete.assert_not_called()


class TestRun:
    """入口测试"""

    def test_run_sync_reads_file(self, api, temp_excel_file):
        api.upsert.return_value = UpsertResult()
        engine = make_engine(api, file_path=str(temp_excel_file))

        assert engine.run() is True
        assert len(api.upsert.call_args.args[0]) == 5

    def test_run_export(self, api, tmp_path, sample_records):
        api.all.return_value = sample_records
        output = tmp_path / "export.csv"
        engine = make_engine(api, action=Action.EXPORT, output_path=str(output))

        assert engine.run() is True

        df = pd.read_csv(output, encoding="utf-8-sig")
        assert df["record_id"].tolist() == ["rec001", "rec002", "rec003"]
        assert df["Name"].tolist() == ["Alice", "Bob", "Charlie"]

    def test_run_export_api_error(self, api, tmp_path):
        api.all.side_effect = InvalidRequest("bad view", status_code=422)
        output = tmp_path / "export.csv"
        engine = make_engine(api, action="export", output_path=str(output))

        assert engine.run() is False
        assert not output.exists()

    def test_run_rejects_unsupported_file(self, api):
        engine = make_engine(api, file_path="data.json")

        with pytest.raises(ValidationError, match="不支持的文件扩展名"):
            engine.run()
