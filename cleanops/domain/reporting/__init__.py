"""Reporting domain - Profitability and trend buckets"""
