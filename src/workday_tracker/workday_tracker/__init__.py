"""Workday Tracker package.

Attendance & break accounting engine organized by feature modules
(timekeeping, breaks, attendance, events) with SOLID service/repository layers.
"""
