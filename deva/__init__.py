"""Deva: natural-language work items for Linear.

A FastAPI application that:
- Classifies free text into a work item (type, priority, labels)
- Explains the classification with per-field confidence
- Creates issues in Linear through an OAuth session
- Stores users, conversations and issue history with SQLAlchemy
"""
