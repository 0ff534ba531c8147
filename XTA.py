#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
XTA (Excel To Airtable) - 统一入口文件
本地表格与 Airtable 数据表之间的同步/导出工具
支持四种同步模式：全量、增量、覆盖、克隆
具备滑动窗口频控、网关错误自动重试、10 条一批的批量写入等功能
"""

import argparse
import logging
import time
from pathlib import Path

from core import Action, ConfigManager, XTASyncEngine, create_sample_config


def setup_logger():
    """设置基础日志器"""
    logger = logging.getLogger()
    if not logger.handlers:  # 避免重复设置
        handler = logging.StreamHandler()
        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def main():
    """主函数"""
    logger = setup_logger()

    print("=" * 70)
    print("     XTA工具")
    print("     支持四种同步模式：全量、增量、覆盖、克隆，以及导出")
    print("=" * 70)

    try:
        # 先解析命令行参数以获取配置文件路径
        parser = argparse.ArgumentParser(add_help=False)
        parser.add_argument('--config', '-c', type=str, default='config.yaml')
        args, _ = parser.parse_known_args()
        config_file_path = args.config

        # 如果指定的配置文件不存在，创建示例配置
        if not Path(config_file_path).exists():
            print(f"配置文件不存在: {config_file_path}")
            if create_sample_config(config_file_path):
                print(f"请编辑 {config_file_path} 文件并重新运行程序")
            return

        config = ConfigManager.create_config()

        print("\n📋 已加载配置:")
        print(f"  配置文件: {config_file_path}")
        print(f"  base: {config.base_id}")
        print(f"  数据表: {config.table}")
        print(f"  动作: {config.action.value}")
        if config.action == Action.SYNC:
            print(f"  数据文件: {config.file_path}")
            print(f"  同步模式: {config.sync_mode.value}")
            print(f"  索引列: {config.index_column or '未指定'}")
        else:
            print(f"  导出文件: {config.output_path}")
        print(f"  最大重试次数: {config.max_retries if config.max_retries is not None else '不限'}")
        print(f"  日志级别: {config.log_level}")

        engine = XTASyncEngine(config)

        print(f"\n🚀 开始执行 {config.action.value} ...")
        start_time = time.time()
        success = engine.run()
        duration = time.time() - start_time

        if success:
            print(f"\n✅ 完成！耗时: {duration:.2f} 秒")
            print(f"🔗 base链接: https://airtable.com/{config.base_id}")
        else:
            print("\n❌ 执行过程中出现错误，请查看日志文件")

    except KeyboardInterrupt:
        print("\n\n⚠️  用户中断操作")
    except Exception as e:
        print(f"\n❌ 程序运行出错: {str(e)}")
        logger.error(f"程序异常: {e}", exc_info=True)


if __name__ == "__main__":
    main()
