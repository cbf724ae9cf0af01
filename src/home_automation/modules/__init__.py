"""
Modules package for home-automation.

Modules are automations built on top of the core.
"""

from home_automation.modules.base import Automation

__all__ = ["Automation"]
