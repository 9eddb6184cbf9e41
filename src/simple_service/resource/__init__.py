"""
Resource

This module provides the resource entity and its repository.
"""

from simple_service.resource.entity import Resource
from simple_service.resource.repository import ResourceRepository

__all__ = ["Resource", "ResourceRepository"]
