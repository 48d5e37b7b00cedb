"""
Attendance Module

Live check-in codes for classroom attendance:
1. Discovery of a live token shared by every open display
2. Minting with a validity window plus clock-skew guard band
3. Per-display countdown and rotation driven by owned scheduler jobs

API Endpoints:
- GET /attendance/current-token - Discover or mint the live token
- WS  /attendance/display - Stream snapshots for one mounted display
"""

from .router import router

__all__ = ["router"]
