"""
Check-in subsystem.

Components:
- checkin_models.py: CheckinEntry, DailyCheckinLogEntry, MissedCheckin
- registry.py: add/remove/list check-ins with rollback + trigger rebuild
- checkin_log.py: per-date record of executed check-ins
- missed.py: missed check-in detection
- scheduler.py: one daily asyncio trigger per check-in
"""
