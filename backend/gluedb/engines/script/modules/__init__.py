"""
Script context modules: database, env, log.
"""

from gluedb.engines.script.modules.database import make_database_module
from gluedb.engines.script.modules.env import make_env_module
from gluedb.engines.script.modules.log import make_log_module

__all__ = [
    "make_database_module",
    "make_env_module",
    "make_log_module",
]
