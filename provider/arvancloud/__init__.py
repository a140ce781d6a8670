# -*- coding: utf-8 -*-
"""
Arvancloud Provider 模块

功能：
- 实现各产品（CDN、Object Storage）的 collector
"""
