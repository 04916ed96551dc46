"""Landscape Deploy - Incremental S3 deployment of static landscape websites."""

__version__ = "0.1.0"
__author__ = "Landscape Team"
__email__ = "landscape-team@example.com"

from landscape_deploy.sync_engine import SiteDeploy
from landscape_deploy.config import Config

__all__ = ["SiteDeploy", "Config", "__version__"]
