"""Google Workspace tools over MCP.

Exposes Drive, Gmail, Calendar and Sheets operations as MCP tools, including
folder path resolution, folder trees and recursive Drive listings.
"""

from gws_tools.__version__ import __version__

__all__ = ["__version__"]
