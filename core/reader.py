#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
数据文件读写模块

模块概述：
    此模块是 XTA 工具的输入/输出层：同步时把数据文件读成 pandas DataFrame，
    导出时把数据表记录写回文件。导出的文件可以直接作为下一次同步的输入。

格式支持：
    - Excel (.xlsx): OpenPyXL 引擎
    - CSV (.csv): 带 BOM 的 UTF-8 写出，读取时依次尝试 UTF-8 与 GBK

CSV 编码处理：
    1. 读取先用 utf-8-sig，同时兼容带 BOM 和不带 BOM 的 UTF-8 文件
    2. 失败则尝试 GBK（中文 Windows 下 Excel 另存的 CSV 常用）
    3. 两者都失败则抛出 ValueError，提示手动指定 encoding
    写出统一用 utf-8-sig，Excel 打开导出的 CSV 时中文不乱码

读取后整理：
    - 列名转为字符串并去掉首尾空白（数据表字段名区分空格）
    - 丢弃整行为空的行（Excel 中常见的尾部空行）

使用示例：
    >>> from core.reader import DataFileReader
    >>> reader = DataFileReader()
    >>> df = reader.read_file(Path('data.xlsx'))
    >>> reader.write_file(df, Path('export.csv'))

依赖关系：
    外部依赖：
        - pandas: DataFrame 支持
        - openpyxl: Excel 读写引擎

作者: XTA Team
"""

import pandas as pd
import logging
from pathlib import Path

CSV_READ_ENCODINGS = ("utf-8-sig", "gbk")
CSV_WRITE_ENCODING = "utf-8-sig"


class DataFileReader:
    """数据文件读写器"""

    SUPPORTED_FORMATS = {
        ".xlsx": "Excel 2007+",
        ".csv": "CSV",
    }

    def __init__(self):
        self.logger = logging.getLogger("XTA.reader")

    def _check_format(self, file_path: Path) -> str:
        file_ext = file_path.suffix.lower()
        if file_ext not in self.SUPPORTED_FORMATS:
            supported = ", ".join(self.SUPPORTED_FORMATS.keys())
            raise ValueError(f"不支持的文件格式: {file_ext}\n支持的格式: {supported}")
        return file_ext

    def read_file(self, file_path: Path, **kwargs) -> pd.DataFrame:
        """
        根据文件扩展名读取数据文件并整理列名和空行

        Args:
            file_path: 文件路径
            **kwargs: 传递给 pandas 读取函数的额外参数

        Raises:
            ValueError: 不支持的文件格式，或 CSV 编码无法识别
            FileNotFoundError: 文件不存在
        """
        if not file_path.exists():
            raise FileNotFoundError(f"文件不存在: {file_path}")

        file_ext = self._check_format(file_path)
        if file_ext == ".csv":
            df = self._read_csv(file_path, **kwargs)
        else:
            df = pd.read_excel(file_path, engine="openpyxl", **kwargs)

        df = self._normalize(df)
        self.logger.info(f"读取 {file_path.name}: {len(df)} 行 × {len(df.columns)} 列")
        return df

    def _read_csv(self, file_path: Path, **kwargs) -> pd.DataFrame:
        if "encoding" in kwargs:
            return pd.read_csv(file_path, **kwargs)

        errors = []
        for encoding in CSV_READ_ENCODINGS:
            try:
                df = pd.read_csv(file_path, encoding=encoding, **kwargs)
            except UnicodeDecodeError as e:
                self.logger.warning(f"{encoding} 编码读取失败，尝试下一种编码: {e}")
                errors.append(e)
                continue
            self.logger.debug(f"CSV 编码: {encoding}")
            return df

        raise ValueError(
            f"无法读取CSV文件，尝试了 {'/'.join(CSV_READ_ENCODINGS)} 编码都失败。\n"
            f"请检查文件编码或手动指定 encoding 参数。\n"
            f"原始错误: {errors[-1]}"
        ) from errors[-1]

    def _normalize(self, df: pd.DataFrame) -> pd.DataFrame:
        df.columns = [str(column).strip() for column in df.columns]
        before = len(df)
        df = df.dropna(how="all").reset_index(drop=True)
        if len(df) < before:
            self.logger.info(f"已丢弃 {before - len(df)} 个空行")
        return df

    def write_file(self, df: pd.DataFrame, file_path: Path) -> Path:
        """将 DataFrame 写入文件，返回写入的路径"""
        file_ext = self._check_format(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        if file_ext == ".csv":
            df.to_csv(file_path, index=False, encoding=CSV_WRITE_ENCODING)
        else:
            df.to_excel(file_path, index=False, engine="openpyxl")

        self.logger.info(f"已写入 {len(df)} 行到 {file_path}")
        return file_path

    @classmethod
    def get_supported_formats(cls) -> str:
        """获取支持的格式列表字符串"""
        formats = [f"{ext} ({desc})" for ext, desc in cls.SUPPORTED_FORMATS.items()]
        return ", ".join(formats)

    @classmethod
    def is_supported(cls, file_path: Path) -> bool:
        return file_path.suffix.lower() in cls.SUPPORTED_FORMATS
