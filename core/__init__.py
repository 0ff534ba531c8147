"""
核心模块
提供统一的配置管理、数据转换、文件读写和同步引擎功能
"""

from .config import (
    Action,
    ClientConfig,
    SyncMode,
    ConfigManager,
    create_sample_config,
)
from .converter import DataConverter
from .reader import DataFileReader
from .engine import XTASyncEngine

__all__ = [
    "Action",
    "ClientConfig",
    "SyncMode",
    "ConfigManager",
    "create_sample_config",
    "DataConverter",
    "DataFileReader",
    "XTASyncEngine",
]
