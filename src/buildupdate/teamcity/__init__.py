"""
TeamCity access.

This package handles:
1. Fetching REST resources and ivy manifests over HTTP
2. Mapping the XML responses to artifact dependency models
"""

from .rest_client import TeamCityClient

__all__ = ["TeamCityClient"]
