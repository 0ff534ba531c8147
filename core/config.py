#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
配置管理模块
提供同步配置和配置管理功能
"""

import yaml
import argparse
import sys
from pathlib import Path
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any, List

from utils.validators import validate_base_id


class SyncMode(Enum):
    """同步模式枚举"""
    FULL = "full"          # 全量同步：按索引列 upsert，已存在的更新，不存在的新增
    INCREMENTAL = "incremental"  # 增量同步：只新增索引值不存在的记录
    OVERWRITE = "overwrite"     # 覆盖同步：删除索引值已存在的记录，然后新增全部
    CLONE = "clone"             # 克隆同步：清空全部，然后新增全部


class Action(Enum):
    """执行动作"""
    SYNC = "sync"      # 数据文件 -> 数据表
    EXPORT = "export"  # 数据表 -> 数据文件


@dataclass
class ClientConfig:
    """客户端与同步配置"""
    # 基础配置
    api_key: str
    base_id: str
    table: str  # 数据表 ID 或名称

    # 动作
    action: Action = Action.SYNC
    file_path: Optional[str] = None
    output_path: Optional[str] = None

    # 同步设置
    sync_mode: SyncMode = SyncMode.FULL
    index_column: Optional[str] = None  # 索引列名，用于记录比对
    typecast: bool = False

    # 网络设置
    max_retries: Optional[int] = None  # 网络/网关错误重试次数，None 表示不限
    timeout: float = 60

    # 调试与日志
    debug: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        if isinstance(self.sync_mode, str):
            self.sync_mode = SyncMode(self.sync_mode)
        if isinstance(self.action, str):
            self.action = Action(self.action)
        validate_base_id(self.base_id)

        if self.action == Action.SYNC and not self.file_path:
            raise ValueError("同步模式需要file_path")
        if self.action == Action.EXPORT and not self.output_path:
            raise ValueError("导出模式需要output_path")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError("max_retries不能为负数")


REQUIRED_FIELDS: List[str] = ['api_key', 'base_id', 'table']

DEFAULTS: Dict[str, Any] = {
    'action': 'sync',
    'sync_mode': 'full',
    'typecast': False,
    'max_retries': None,
    'timeout': 60,
    'debug': False,
    'log_level': 'INFO',
}


class ConfigManager:
    """配置管理器"""

    @staticmethod
    def load_from_file(config_file: str) -> Optional[Dict[str, Any]]:
        """从YAML文件加载配置"""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except FileNotFoundError:
            print(f"配置文件不存在: {config_file}")
            return None
        except yaml.YAMLError as e:
            print(f"YAML配置文件格式错误: {e}")
            return None

    @staticmethod
    def save_to_file(config: Dict[str, Any], config_file: str):
        """保存配置到YAML文件"""
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(config, f, default_flow_style=False, allow_unicode=True, indent=2)

    @staticmethod
    def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
        """解析命令行参数"""
        parser = argparse.ArgumentParser(description='XTA - Excel To Airtable 同步工具')

        # 基础配置
        parser.add_argument('--config', '-c', type=str, default='config.yaml',
                            help='配置文件路径 (默认: config.yaml)')
        parser.add_argument('--api-key', type=str, help='Airtable 访问令牌')
        parser.add_argument('--base-id', type=str, help='base ID (appXXX)')
        parser.add_argument('--table', type=str, help='数据表 ID 或名称')

        # 动作
        parser.add_argument('--action', type=str, choices=['sync', 'export'],
                            help='执行动作')
        parser.add_argument('--file-path', type=str, help='待同步的数据文件路径')
        parser.add_argument('--output-path', type=str, help='导出文件路径')

        # 同步设置
        parser.add_argument('--sync-mode', type=str,
                            choices=['full', 'incremental', 'overwrite', 'clone'],
                            help='同步模式')
        parser.add_argument('--index-column', type=str, help='索引列名')
        parser.add_argument('--typecast', action='store_true',
                            help='让服务端按字段类型自动转换值')

        # 网络设置
        parser.add_argument('--max-retries', type=int, help='网络/网关错误最大重试次数')
        parser.add_argument('--timeout', type=float, help='单次请求超时秒数')

        # 调试与日志
        parser.add_argument('--debug', action='store_true', help='输出请求调试信息')
        parser.add_argument('--log-level', type=str,
                            choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                            help='日志级别')

        return parser.parse_args(argv)

    @classmethod
    def create_config(cls, argv: Optional[List[str]] = None) -> ClientConfig:
        """创建配置对象：默认值 < 配置文件 < 命令行参数"""
        args = cls.parse_args(argv)

        config_data = dict(DEFAULTS)

        # 尝试从配置文件加载，覆盖默认值
        if Path(args.config).exists():
            file_config = cls.load_from_file(args.config)
            if file_config:
                config_data.update(file_config)
                print(f"✅ 已从配置文件加载参数: {args.config}")
            else:
                print(f"⚠️  配置文件 {args.config} 加载失败，使用默认值")
        else:
            print(f"⚠️  配置文件 {args.config} 不存在，使用默认值")

        # 命令行参数覆盖文件配置（只有当明确提供时）
        cli_overrides = []
        for key in ['api_key', 'base_id', 'table', 'action', 'file_path', 'output_path',
                    'sync_mode', 'index_column', 'max_retries', 'timeout', 'log_level']:
            value = getattr(args, key)
            if value is not None:
                config_data[key] = value
                shown = "***" if key == 'api_key' else value
                cli_overrides.append(f"{key}={shown}")
        for flag in ['typecast', 'debug']:  # action='store_true'，只有指定时才为True
            if getattr(args, flag):
                config_data[flag] = True
                cli_overrides.append(f"{flag}=True")

        if cli_overrides:
            print(f"🔧 命令行参数覆盖: {', '.join(cli_overrides)}")

        # 验证必需参数
        missing_fields = [f for f in REQUIRED_FIELDS if not config_data.get(f)]
        if missing_fields:
            print(f"\n❌ 错误: 缺少必需参数: {', '.join(missing_fields)}")
            print("💡 请在配置文件中设置，或通过命令行参数指定:")
            for field in missing_fields:
                print(f"   --{field.replace('_', '-')} <值>")
            sys.exit(1)

        known_keys = set(ClientConfig.__dataclass_fields__)
        unknown_keys = sorted(set(config_data) - known_keys)
        if unknown_keys:
            print(f"⚠️  忽略未知配置项: {', '.join(unknown_keys)}")

        return ClientConfig(**{k: v for k, v in config_data.items() if k in known_keys})


def create_sample_config(config_file: str = "config.yaml") -> bool:
    """创建示例配置文件"""
    sample_config = {
        "api_key": "pat_your_personal_access_token",
        "base_id": "appYourBaseId",
        "table": "Contacts",
        "action": "sync",
        "file_path": "data.xlsx",
        "output_path": "export.xlsx",
        "sync_mode": "full",
        "index_column": "ID",
        "typecast": False,
        "debug": False,
        "log_level": "INFO"
    }

    if not Path(config_file).exists():
        ConfigManager.save_to_file(sample_config, config_file)
        print(f"已创建示例配置文件: {config_file}")
        print("请编辑配置文件并填入正确的参数值")
        return True
    print(f"配置文件 {config_file} 已存在")
    return False
