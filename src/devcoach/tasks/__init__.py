"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus)
- task_store.py: JSON-backed to-do list + start/complete/remove state machine
"""
