"""Verification domain - Job photo review and scoring"""
