"""
Slack Code Lookup Services

- Channel history reads and thread replies
- Unused code filtering, selection and consumption
"""

from .code_resolver import CodeResolver
from .history_service import SlackHistoryService

__all__ = ['CodeResolver', 'SlackHistoryService']
