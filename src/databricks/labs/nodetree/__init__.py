import os

from databricks.sdk.core import with_user_agent_extra

from databricks.labs.nodetree.__about__ import __version__
from databricks.labs.nodetree.namespace import NodeTree
from databricks.labs.nodetree.store import NodeExists, NodeStore, NodeStoreError, NoNode, NotEmpty
from databricks.labs.nodetree.tree import delete_children, mkdirs, sorted_children

# every request a WorkspaceStore sends carries this package in its user agent
with_user_agent_extra("nodetree", __version__)

cli_version = os.environ.get("DATABRICKS_CLI_VERSION")
if cli_version:
    with_user_agent_extra("cli", cli_version)

__all__ = [
    "NodeExists",
    "NodeStore",
    "NodeStoreError",
    "NoNode",
    "NodeTree",
    "NotEmpty",
    "delete_children",
    "mkdirs",
    "sorted_children",
]
