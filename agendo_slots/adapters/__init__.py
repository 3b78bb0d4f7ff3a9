"""
Adapters layer - Schedule repositories (YAML file and marketplace API).
"""

from .http_repository import HttpScheduleRepository
from .yaml_repository import YamlScheduleRepository

__all__ = ["HttpScheduleRepository", "YamlScheduleRepository"]
