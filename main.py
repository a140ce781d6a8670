#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Arvancloud Exporter 主程序入口

功能：
- 解析命令行参数，加载配置文件
- 启动 Flask HTTP 服务器
- 暴露 metrics 端点供 Prometheus 抓取（每次抓取时采集）
- 暴露 /health 健康检查端点
"""

import argparse
import json
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from flask import Flask
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Info, generate_latest

from collector.collector import (
    DEFAULT_TIMEOUT, ArvancloudExporterCollector, Option, with_cdn, with_object, with_timeout
)
from config.loader import Config, ConfigError, load_config_file, merge_flags, parse_duration
from config.validator import validate_config

__version__ = '1.0.0'

# 配置无法加载时的退出码
EXIT_CONFIG_ERROR = 3

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
}

TEXT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """每条日志输出一行 JSON"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'time': self.formatTime(record, '%Y-%m-%dT%H:%M:%S%z'),
            'level': record.levelname.lower(),
            'logger': record.name,
            'msg': record.getMessage(),
        }
        if record.exc_info:
            entry['error'] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(level: str = 'info', fmt: str = 'json'):
    """
    配置日志

    Args:
        level: 日志级别（debug, info, warning, error, critical）
        fmt: 日志格式（json 或 text）

    Raises:
        ValueError: 日志级别无效
    """
    log_level = LOG_LEVELS.get(level.lower())
    if log_level is None:
        raise ValueError(f"无效的日志级别: {level}")

    handler = logging.StreamHandler()
    if fmt == 'text':
        handler.setFormatter(logging.Formatter(TEXT_LOG_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())

    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # 减少 Flask 日志
    logging.getLogger('werkzeug').setLevel(logging.WARNING)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Arvancloud Prometheus Exporter')
    parser.add_argument('--config-file', default='', help='config file to load')
    parser.add_argument('--log-format', default='json', choices=['json', 'text'],
                        help='log format text or json (default json)')
    parser.add_argument('--log-level', default='info', help='log level')
    parser.add_argument('--path', default='/metrics', help='path to answer requests on')
    parser.add_argument('--token', default='', help='authentication token for API')
    parser.add_argument('--port', default=':9436', help='port number to listen on')
    parser.add_argument('--timeout', default=f"{DEFAULT_TIMEOUT:g}s", help='timeout when connecting to API')
    parser.add_argument('--version', action='store_true', help='find the version of binary')
    parser.add_argument('--with-cdn', action='store_true', help='retrieves CDN metrics')
    parser.add_argument('--with-object', action='store_true', help='retrieves ObjectStorage metrics')
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """
    加载配置：配置文件（可选）+ 命令行参数（优先）

    Raises:
        ConfigError: 配置文件无法读取或配置无效
    """
    if args.config_file:
        logger.info(f"正在加载配置文件: {args.config_file}")
        cfg = load_config_file(args.config_file)
    else:
        cfg = Config()

    cfg = merge_flags(cfg, token=args.token, with_cdn=args.with_cdn, with_object=args.with_object)

    is_valid, error_message = validate_config(cfg)
    if not is_valid:
        raise ConfigError(error_message)

    return cfg


def collector_options(cfg: Config, timeout: float) -> List[Option]:
    """根据已启用的产品生成 collector option"""
    opts = [with_timeout(timeout)]

    if cfg.products.cdn:
        opts.append(with_cdn())

    if cfg.products.object_storage:
        opts.append(with_object(cfg.object_storage))

    return opts


def create_registry(cfg: Config, timeout: float) -> CollectorRegistry:
    """创建独立的 CollectorRegistry 并注册 exporter 的 collector"""
    registry = CollectorRegistry()

    build_info = Info('arvancloud_exporter_build', 'arvancloud_exporter build information', registry=registry)
    build_info.info({'version': __version__, 'pythonversion': sys.version.split()[0]})

    registry.register(ArvancloudExporterCollector(cfg, *collector_options(cfg, timeout)))
    return registry


def create_app(registry: CollectorRegistry, metrics_path: str = '/metrics') -> Flask:
    """
    创建 Flask 应用

    Args:
        registry: 要暴露的 CollectorRegistry
        metrics_path: metrics 端点路径
    """
    app = Flask(__name__)

    def metrics():
        """
        Prometheus metrics 端点

        采集失败时依然返回 200，失败体现在 arvancloud_scrape_collector_success 中
        """
        return generate_latest(registry), 200, {'Content-Type': CONTENT_TYPE_LATEST}

    def health():
        """健康检查端点"""
        return 'ok', 200

    def index():
        return f"""<html>
			<head><title>Arvancloud Exporter</title></head>
			<body>
			<h1>Arvancloud Exporter</h1>
			<p><a href="{metrics_path}">Metrics</a></p>
			</body>
			</html>""", 200

    app.add_url_rule(metrics_path, 'metrics', metrics)
    app.add_url_rule('/health', 'health', health)
    if metrics_path != '/':
        app.add_url_rule('/', 'index', index)

    return app


def parse_listen_address(address: str) -> Tuple[str, int]:
    """
    解析监听地址

    ":9436" -> ("0.0.0.0", 9436)，"127.0.0.1:9436" -> ("127.0.0.1", 9436)

    Raises:
        ValueError: 端口无效
    """
    host, sep, port = address.rpartition(':')
    if not sep:
        host, port = '', address

    port_number = int(port)
    if not 0 < port_number < 65536:
        raise ValueError(f"端口必须在 1-65535 之间: {port}")

    return host or '0.0.0.0', port_number


def main(argv: Optional[Sequence[str]] = None):
    """
    主函数：启动 Flask 服务器

    功能：
    1. 配置日志（日志级别无效时以退出码 3 退出）
    2. 加载配置（失败时以退出码 3 退出）
    3. 注册 collector
    4. 启动 HTTP 服务器
    """
    args = parse_args(argv)

    if args.version:
        print(f"arvancloud_exporter version {__version__}")
        return

    try:
        configure_logging(args.log_level, args.log_format)
    except ValueError as e:
        configure_logging('info', args.log_format)
        logger.error(f"Could not configure logging: {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    logger.info("Welcome to Arvancloud Prometheus Exporter")
    logger.info(f"Version: {__version__}")

    try:
        cfg = load_config(args)
        timeout = parse_duration(args.timeout)
    except ConfigError as e:
        logger.error(f"Could not load config: {e}")
        sys.exit(EXIT_CONFIG_ERROR)

    try:
        registry = create_registry(cfg, timeout)
        host, port = parse_listen_address(args.port)
    except ValueError as e:
        logger.error(f"无法启动 exporter: {e}")
        sys.exit(1)

    app = create_app(registry, args.path)

    logger.info(f"Listening on {host}:{port}")
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
