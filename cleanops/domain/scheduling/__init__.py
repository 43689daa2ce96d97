"""Scheduling domain - Job windows, availability, calendar and rescheduling"""
